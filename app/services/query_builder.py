"""Upstream query parameters for a resource selector."""

import json
from typing import Any, Dict

from app.models.gateway import GatewayConfig, ResourceKind, ResourceSelector


def build_query_variables(selector: ResourceSelector, config: GatewayConfig) -> Dict[str, Any]:
    """
    Map a selector to the upstream query variables.

    Tag and default selectors search by ``tag_name``; user selectors by ``id``.
    ``after`` is left out entirely when no cursor was supplied.
    """
    if selector.kind is ResourceKind.USER:
        variables: Dict[str, Any] = {"hash": config.user_query_hash, "id": selector.value}
    elif selector.kind is ResourceKind.TAG:
        variables = {"hash": config.tag_query_hash, "tag_name": selector.value}
    else:
        variables = {"hash": config.tag_query_hash, "tag_name": config.default_tag}

    variables["first"] = config.default_first
    if selector.after:
        variables["after"] = selector.after

    return {key: value for key, value in variables.items() if value is not None}


def build_query_string(variables: Dict[str, Any]) -> str:
    """Combine the query hash and the JSON-encoded variables into one query string."""
    encoded = json.dumps(variables, separators=(",", ":"), ensure_ascii=False)
    return f"query_hash={variables['hash']}&variables={encoded}"


def build_search_path(selector: ResourceSelector, config: GatewayConfig) -> str:
    """Return the upstream path, query string included, for ``selector``."""
    query = build_query_string(build_query_variables(selector, config))
    return f"{config.search_path}/?{query}"
