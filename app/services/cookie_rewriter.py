"""Set-Cookie domain rewriting."""

from typing import List, Optional, Sequence


def rewrite_cookie_domains(
    cookies: Optional[Sequence[str]], upstream_domain: str, gateway_domain: Optional[str]
) -> List[str]:
    """
    Replace the upstream cookie domain with the gateway's in every Set-Cookie value.

    All other cookie attributes are kept verbatim. With no gateway domain
    configured the values pass through unchanged.
    """
    if not cookies:
        return []
    if not gateway_domain or not upstream_domain:
        return list(cookies)
    return [cookie.replace(upstream_domain, gateway_domain) for cookie in cookies]
