"""Request/response transport to the onboarding API, plus an explicit resource cache.

ApiTransport maps every failure onto the core's error taxonomy:
- network errors, 5xx and other unexpected statuses -> TransportError
- 401 / 403 -> AuthError
- 400 / 422 -> ValidationError
"""

from typing import Any

import httpx
import structlog
from pydantic_core import to_jsonable_python

from gridiron.core.config import get_settings
from gridiron.core.exceptions import AuthError, TransportError, ValidationError

logger = structlog.get_logger(__name__)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


class ApiTransport:
    """Thin JSON client over httpx.AsyncClient.

    Pass ``client`` to supply a preconfigured AsyncClient (tests use
    ``httpx.MockTransport``); otherwise one is built from settings.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        token = token if token is not None else settings.api_token
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.request_timeout_seconds,
            headers=headers,
        )

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        """Send one request and return the decoded JSON body (None if empty).

        Raises:
            TransportError: Network failure, 5xx, unexpected status or bad JSON
            AuthError: 401 or 403
            ValidationError: 400 or 422
        """
        body = to_jsonable_python(json) if json is not None else None
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.HTTPError as exc:
            logger.warning("transport_request_failed", method=method, path=path, error=str(exc), error_type=type(exc).__name__)
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthError(_error_detail(response), status_code=status)
        if status in (400, 422):
            raise ValidationError(_error_detail(response))
        if status >= 400:
            logger.warning("transport_bad_status", method=method, path=path, status_code=status)
            raise TransportError(f"{method} {path} returned {status}: {_error_detail(response)}", status_code=status)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"{method} {path} returned invalid JSON", status_code=status) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class ResourceCache:
    """Local cache keyed by resource identity (the request path).

    Entries never go stale on their own; writers call ``invalidate``.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries
