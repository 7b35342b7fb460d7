"""Upstream GET with bounded redirect chasing."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from app.models.gateway import GatewayConfig, UpstreamRequestSpec, UpstreamResponse
from app.utils.exceptions import (
    RedirectRejectedError,
    TooManyRedirectsError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def is_redirect(status: int) -> bool:
    # 300 Multiple Choices is terminal.
    return 300 < status < 400


def _collect_headers(headers: httpx.Headers) -> Dict[str, List[str]]:
    collected: Dict[str, List[str]] = {}
    for key, value in headers.multi_items():
        collected.setdefault(key.lower(), []).append(value)
    return collected


class UpstreamFetcher:
    """Issues upstream GETs and follows 3xx responses until a terminal one."""

    def __init__(
        self,
        timeout: float = 10.0,
        deadline: float = 25.0,
        max_redirects: int = 5,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: Per-hop timeout in seconds
            deadline: Overall budget in seconds for the whole redirect chase
            max_redirects: Redirects allowed before giving up
            verify: Validate upstream TLS certificates
            transport: Optional httpx transport (tests inject a mock one)
        """
        self.timeout = timeout
        self.deadline = deadline
        self.max_redirects = max_redirects
        self.verify = verify
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: GatewayConfig, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "UpstreamFetcher":
        return cls(
            timeout=config.http_timeout,
            deadline=config.request_deadline,
            max_redirects=config.max_redirects,
            verify=config.verify_tls,
            transport=transport,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=False,
            verify=self.verify,
            transport=self._transport,
        )

    async def fetch(
        self,
        spec: UpstreamRequestSpec,
        validate_redirect: Optional[Callable[[str], Any]] = None,
    ) -> UpstreamResponse:
        """
        Perform the request and return the terminal response, body fully buffered.

        Args:
            spec: The first request
            validate_redirect: Called with each redirect target's host before it
                is requested; a ValidationError it raises stops the chase

        Raises:
            UpstreamTimeoutError: If a hop or the overall deadline times out
            UpstreamUnreachableError: On connection or protocol failures
            TooManyRedirectsError: If more than ``max_redirects`` redirects occur
            RedirectRejectedError: If ``validate_redirect`` refuses a target
        """
        start_time = time.time()
        try:
            response = await asyncio.wait_for(
                self._chase(spec, validate_redirect), timeout=self.deadline
            )
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"Upstream did not answer within {self.deadline}s", url=spec.url
            ) from e

        logger.info(
            f"Upstream responded: {response.status}",
            extra={
                "upstream_url": response.url,
                "status_code": response.status,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return response

    async def _chase(
        self,
        spec: UpstreamRequestSpec,
        validate_redirect: Optional[Callable[[str], Any]] = None,
    ) -> UpstreamResponse:
        current = spec
        async with self._client() as client:
            for hop in range(self.max_redirects + 1):
                response = await self._send(client, current)
                location = response.header("location")
                if not (is_redirect(response.status) and location):
                    return response

                logger.info(
                    f"Following redirect {hop + 1}: {response.status}",
                    extra={"upstream_url": current.url, "location": location},
                )
                target = current.redirected_to(location)
                if validate_redirect is not None:
                    try:
                        validate_redirect(target.host)
                    except ValidationError as e:
                        logger.warning(
                            f"Refusing redirect to {target.host}",
                            extra={"upstream_url": current.url, "location": location},
                        )
                        raise RedirectRejectedError(
                            f"Redirect to disallowed host: {e}", url=target.url
                        ) from e
                current = target

        raise TooManyRedirectsError(
            f"Exceeded {self.max_redirects} redirects", url=current.url
        )

    async def _send(self, client: httpx.AsyncClient, spec: UpstreamRequestSpec) -> UpstreamResponse:
        logger.info(f"URL to call: {spec.url}")
        try:
            response = await client.request(
                spec.method,
                spec.url,
                headers=spec.headers,
                content=spec.body or None,
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Timed out calling upstream: {e}", url=spec.url) from e
        except httpx.TransportError as e:
            raise UpstreamUnreachableError(f"Failed to reach upstream: {e}", url=spec.url) from e
        except httpx.InvalidURL as e:
            raise UpstreamUnreachableError(f"Invalid upstream URL: {e}", url=spec.url) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Upstream request failed: {e}", url=spec.url) from e

        return UpstreamResponse(
            status=response.status_code,
            headers=_collect_headers(response.headers),
            body=response.content,
            url=spec.url,
        )
