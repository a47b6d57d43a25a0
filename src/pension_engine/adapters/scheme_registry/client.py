"""Scheme registry HTTP client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
import pydantic

from pension_engine.adapters.http_resilience import ResilientClient
from pension_engine.domain.errors import ExternalServiceError, SchemeNotFound

from .schema import SchemeDocument
from .translator import translate_scheme

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from pension_engine.config.http_resilience import ResilienceConfig
    from pension_engine.config.scheme_registry import SchemeRegistryConfig
    from pension_engine.domain.rules import SchemeRuleSet

log = getLogger(__name__)


class HttpSchemeRuleSource:
    """``SchemeRuleSource`` backed by ``GET {base_url}/schemes/{scheme_id}``.

    One ``ResilientClient`` is opened on the first lookup and kept until
    ``aclose``, so its rate limit and HTTP cache span every lookup made through
    this source. Reuse within a request comes from the engine's rule set memo.
    """

    def __init__(
        self,
        *,
        config: SchemeRegistryConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if config.base_url is None:
            raise ValueError("Missing scheme registry base_url in resilience configuration")
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> HttpSchemeRuleSource:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    def _open_client(self) -> ResilientClient:
        if self._client is None:
            log.debug("Opening scheme registry client for %s", self._resilience.base_url)
            self._client = self._client_factory(self._resilience)
        return self._client

    async def get(self, scheme_id: str) -> SchemeRuleSet:
        path = f"schemes/{quote(scheme_id, safe='')}"
        client = self._open_client()
        try:
            response = await client.get(path)
        except httpx.TimeoutException as exc:
            log.warning("Scheme registry timed out for scheme %s", scheme_id)
            raise ExternalServiceError(f"Scheme registry timed out for scheme {scheme_id}") from exc
        except httpx.HTTPError as exc:
            log.warning("Scheme registry request failed for scheme %s: %s", scheme_id, exc)
            raise ExternalServiceError(
                f"Scheme registry request failed for scheme {scheme_id}: {exc}"
            ) from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise SchemeNotFound(scheme_id)
        if not response.is_success:
            log.warning(
                "Scheme registry returned %s for scheme %s", response.status_code, scheme_id
            )
            raise ExternalServiceError(
                f"Scheme registry returned {response.status_code} for scheme {scheme_id}",
                status_code=response.status_code,
            )

        return translate_scheme(scheme_id, _parse_document(scheme_id, response))


def _parse_document(scheme_id: str, response: httpx.Response) -> SchemeDocument:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ExternalServiceError(
            f"Scheme registry returned invalid JSON for scheme {scheme_id}",
            status_code=response.status_code,
        ) from exc
    if not isinstance(payload, dict):
        raise ExternalServiceError(
            f"Unexpected scheme registry payload for scheme {scheme_id}",
            status_code=response.status_code,
        )
    try:
        return SchemeDocument.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ExternalServiceError(
            f"Invalid scheme document for scheme {scheme_id}",
            status_code=response.status_code,
        ) from exc
