from typing import Protocol, Sequence

from promptomatic.models import CanonicalResult, Message


class LLMAdapter(Protocol):
    """
    Translator between the canonical transcript/result types and one vendor's
    wire protocol. Nothing above this boundary branches on vendor identity.
    """

    provider_name: str

    async def complete(
        self,
        transcript: Sequence[Message],
        temperature: float,
        max_tokens: int,
        correlation_id: str = "",
    ) -> CanonicalResult:
        """Performs one request/response round trip; raises ProviderError on failure."""
        ...

    async def aclose(self) -> None:
        ...
