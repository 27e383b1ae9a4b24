"""Client plumbing for the companion storefront REST API.

Adapters that talk to the backend (payments, orders, pricing) share the base
URL resolution, the error type and the JSON POST helper defined here.
"""

import os

import httpx
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_SITE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 15.0


class StorefrontAPIError(Exception):
    """The companion API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def get_api_base_url() -> str:
    """Resolve the companion API base URL.

    ``STOREFRONT_API_URL`` wins when set. Outside production the local
    development server is assumed; in production a missing URL is logged and
    an empty base is returned so calls fail loudly instead of guessing.
    """
    env_url = os.environ.get("STOREFRONT_API_URL", "").strip()
    if env_url:
        return env_url.rstrip("/")

    if os.environ.get("PROTEAN_ENV") == "production":
        logger.error("STOREFRONT_API_URL is not configured")
        return ""

    return DEFAULT_API_URL


def get_site_url() -> str:
    return os.environ.get("STOREFRONT_SITE_URL", DEFAULT_SITE_URL).strip().rstrip("/")


def build_api_url(path: str, base_url: str | None = None) -> str:
    base = get_api_base_url() if base_url is None else base_url.rstrip("/")
    if not path.startswith("/"):
        return f"{base}/{path}"
    return f"{base}{path}"


class APIClient:
    """Thin JSON client over ``httpx.AsyncClient``.

    A fresh ``AsyncClient`` is opened per call; ``transport`` is injectable so
    tests can answer requests with ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = get_api_base_url() if base_url is None else base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def post(self, path: str, payload: dict) -> dict:
        url = build_api_url(path, self.base_url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Storefront API request failed", url=url, error=str(exc))
            raise StorefrontAPIError(f"Failed to connect to storefront API: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning(
                "Storefront API returned an error",
                url=url,
                status_code=response.status_code,
                message=message,
            )
            raise StorefrontAPIError(
                message or f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise StorefrontAPIError("Storefront API returned an unexpected response", status_code=response.status_code)

        return body
