import uuid
from typing import Callable, Optional, Sequence

from .adapters import LLMAdapter, build_adapter
from .config import ConfigurationError, ProviderConfig
from .logger import chat_logger
from .models import CanonicalResult, Message
from .provider_client import ProviderError


class ProviderRouter:
    """
    Routes every turn to the one adapter selected by the process configuration.

    The credential check happens on each call and before the adapter is even
    created, so a missing key never produces network traffic.
    """

    def __init__(
        self,
        config: ProviderConfig,
        adapter_factory: Callable[[ProviderConfig], LLMAdapter] = build_adapter,
    ):
        self.config = config
        self._adapter_factory = adapter_factory
        self._adapter: Optional[LLMAdapter] = None

    @property
    def provider(self) -> str:
        return self.config.provider

    def _check_credential(self):
        if not self.config.credential:
            variable = self.config.credential_variable
            chat_logger.error(f"Missing credential {variable} for provider '{self.provider}'")
            raise ConfigurationError(
                f"{variable} is not configured. Set {variable} in your .env file "
                f"or switch LLM_PROVIDER."
            )
        if not self.config.credential.isascii():
            variable = self.config.credential_variable
            chat_logger.error(f"Credential {variable} for provider '{self.provider}' contains non-ASCII characters")
            raise ConfigurationError(
                f"{variable} contains non-ASCII characters. Check the value for pasted quotes or spaces."
            )

    def _get_adapter(self) -> LLMAdapter:
        if self._adapter is None:
            self._adapter = self._adapter_factory(self.config)
        return self._adapter

    async def route(
        self,
        transcript: Sequence[Message],
        temperature: float,
        max_tokens: int,
        correlation_id: Optional[str] = None,
    ) -> CanonicalResult:
        """Sends the transcript to the configured provider and returns its canonical result."""
        self._check_credential()
        correlation_id = correlation_id or str(uuid.uuid4())

        try:
            adapter = self._get_adapter()
            return await adapter.complete(transcript, temperature, max_tokens, correlation_id=correlation_id)
        except ProviderError:
            raise
        except Exception as e:
            chat_logger.exception(
                f"Unexpected error while calling provider '{self.provider}', correlation_id={correlation_id}"
            )
            raise ProviderError(f"Unexpected provider failure: {e}", provider=self.provider) from e

    async def aclose(self):
        if self._adapter is not None:
            await self._adapter.aclose()
            self._adapter = None
