import httpx
from typing import Optional, Dict, Any

from pydantic import ValidationError

from .config import LLM_CLIENT_TIMEOUT
from .contracts.errors import VendorErrorEnvelope
from .logger import chat_logger


class ProviderError(Exception):
    """Raised when an LLM vendor returns a non-success response or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """Raised when a vendor call exceeds the configured timeout."""
    pass


class ProviderClient:
    """
    An async HTTP client for one LLM vendor.
    Features:
    - Connection pooling via a shared httpx.AsyncClient instance.
    - An explicit timeout; a single attempt per call, no retries.
    - Vendor error bodies turned into a ProviderError with a readable message.
    - Request tracing with a correlation_id.
    """

    provider_name = "llm"
    display_name = "LLM"

    def __init__(
        self,
        base_url: str,
        timeout: float = LLM_CLIENT_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, headers=headers, transport=transport
        )
        self.base_url = base_url

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    def _error_message(self, response: httpx.Response) -> str:
        fallback = f"{self.display_name} API error"
        try:
            envelope = VendorErrorEnvelope.model_validate(response.json())
        except (ValueError, ValidationError):
            return fallback
        if envelope.error and envelope.error.message:
            return envelope.error.message
        return fallback

    async def _post(self, url: str, correlation_id: str, json_data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        chat_logger.info(
            f"POST {self.base_url}{url} ({self.provider_name}), correlation_id={correlation_id}"
        )
        try:
            response = await self._client.post(url, json=json_data, **kwargs)
        except httpx.TimeoutException as e:
            chat_logger.warning(
                f"Request timed out for {self.base_url}{url}: {e}, correlation_id={correlation_id}"
            )
            raise ProviderTimeoutError(
                f"{self.display_name} request timed out", provider=self.provider_name
            ) from e
        except httpx.RequestError as e:
            chat_logger.warning(
                f"Request Error for {self.base_url}{url}: {e}, correlation_id={correlation_id}"
            )
            raise ProviderError(
                f"{self.display_name} request failed: {e}", provider=self.provider_name
            ) from e

        if not response.is_success:
            message = self._error_message(response)
            chat_logger.error(
                f"{self.display_name} returned {response.status_code}: {message}, correlation_id={correlation_id}"
            )
            raise ProviderError(message, status_code=response.status_code, provider=self.provider_name)

        try:
            return response.json()
        except ValueError as e:
            chat_logger.error(
                f"{self.display_name} returned a non-JSON body, correlation_id={correlation_id}"
            )
            raise ProviderError(
                f"{self.display_name} returned an unreadable response",
                status_code=response.status_code,
                provider=self.provider_name,
            ) from e
