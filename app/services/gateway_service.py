"""Proxy pipeline for the query and image paths."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import httpx

from app.models.gateway import GatewayConfig, OutgoingResponse, ResourceSelector, UpstreamRequestSpec
from app.services.cookie_rewriter import rewrite_cookie_domains
from app.services.image_service import ImageFetcher, build_image_request
from app.services.origin_gate import OriginGate
from app.services.payload_rewriter import PayloadRewriter
from app.services.query_builder import build_search_path
from app.services.response_assembler import (
    assemble_error_response,
    assemble_image_response,
    assemble_origin_denied_response,
    assemble_query_response,
    image_cors_headers,
    query_cors_headers,
)
from app.services.upstream_fetcher import UpstreamFetcher
from app.utils.exceptions import GatewayException, OriginRejectedError

logger = logging.getLogger(__name__)


class GatewayService:
    """Runs one proxied request from origin check to outgoing response."""

    def __init__(self, config: GatewayConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.origin_gate = OriginGate(config.allowed_origins)
        self.fetcher = UpstreamFetcher.from_config(config, transport=transport)
        self.image_fetcher = ImageFetcher(self.fetcher)

    def build_query_request(self, selector: ResourceSelector) -> UpstreamRequestSpec:
        headers = {}
        if self.config.session_id:
            headers["cookie"] = f"sessionid={self.config.session_id};"
        return UpstreamRequestSpec(
            host=self.config.upstream_host,
            path=build_search_path(selector, self.config),
            protocol=self.config.upstream_protocol,
            headers=headers,
        )

    def payload_rewriter(self, host: str) -> PayloadRewriter:
        return PayloadRewriter(
            host=host,
            base_path=self.config.gateway_base_path(host),
            image_path=self.config.image_path,
            protocol=self.config.image_protocol,
        )

    async def handle_query(
        self, selector: ResourceSelector, origin: Optional[str], host: Optional[str]
    ) -> OutgoingResponse:
        """
        Proxy a structured query.

        Args:
            selector: Which resource to query
            origin: Caller's Origin header, if any
            host: Caller's Host header, used for rewritten image links

        Returns:
            The outgoing response; failures are returned, never raised
        """
        try:
            validated_origin = self.origin_gate.check(origin)
        except OriginRejectedError:
            return assemble_origin_denied_response()

        try:
            upstream = await self.fetcher.fetch(self.build_query_request(selector))
            if not upstream.is_success:
                logger.warning(
                    f"Upstream query returned HTTP {upstream.status}",
                    extra={"upstream_url": upstream.url, "status_code": upstream.status},
                )

            body = upstream.text
            logger.debug(f"Upstream payload: {body[:200]}...")
            if host:
                body = self.payload_rewriter(host).rewrite(body)
            else:
                logger.warning("No Host header; image URLs left pointing at the upstream")

            cookies = rewrite_cookie_domains(
                upstream.header_values("set-cookie"),
                self.config.upstream_cookie_domain,
                self.config.cookie_domain,
            )
            return assemble_query_response(upstream, body, cookies, validated_origin, self.config)

        except GatewayException as e:
            logger.error(
                f"Query proxy failed: {e.error_message}",
                extra={"exception": str(e), "selector": selector.kind.value},
            )
            return assemble_error_response(e, query_cors_headers(validated_origin, self.config))

    async def handle_image(self, params: Mapping[str, str], origin: Optional[str]) -> OutgoingResponse:
        """
        Proxy a CDN image as a base64 body.

        Args:
            params: Caller's query parameters, including ``_nc_ht`` and ``url``
            origin: Caller's Origin header, if any

        Returns:
            The outgoing response; failures are returned, never raised
        """
        try:
            self.origin_gate.check(origin)
        except OriginRejectedError:
            return assemble_origin_denied_response()

        try:
            spec = build_image_request(params, self.config)
            encoded = await self.image_fetcher.fetch(spec)
            return assemble_image_response(encoded, self.config)

        except GatewayException as e:
            logger.error(
                f"Image proxy failed: {e.error_message}",
                extra={"exception": str(e)},
            )
            return assemble_error_response(e, image_cors_headers(self.config))
