import logging
import uuid
from typing import Any, Dict, Optional, Sequence

import httpx
from pydantic import ValidationError

from promptomatic.config import ProviderConfig
from promptomatic.contracts import (
    OpenAIChatRequest,
    OpenAIChatResponse,
    OpenAIEndpoints,
    OpenAIMessage,
)
from promptomatic.models import CanonicalResult, CanonicalToolCall, Message
from promptomatic.provider_client import ProviderClient, ProviderError
from promptomatic.tools import openai_tool_definitions

logger = logging.getLogger(__name__)


class OpenAIAdapter(ProviderClient):
    """Chat Completions adapter. The transcript is sent as-is; tool choice is left to the model."""

    provider_name = "openai"
    display_name = "OpenAI"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4-turbo-preview",
        base_url: str = "https://api.openai.com",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {api_key}"}
        super().__init__(base_url=base_url, timeout=timeout, headers=headers, transport=transport)
        self.model = model

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "OpenAIAdapter":
        return cls(
            api_key=config.openai_api_key,
            model=config.openai_model,
            base_url=config.openai_base_url,
            timeout=config.timeout,
        )

    def build_payload(self, transcript: Sequence[Message], temperature: float, max_tokens: int) -> Dict[str, Any]:
        request = OpenAIChatRequest(
            model=self.model,
            messages=[OpenAIMessage(role=m.role, content=m.content) for m in transcript],
            temperature=temperature,
            max_tokens=max_tokens,
            tools=openai_tool_definitions(),
            tool_choice="auto",
        )
        return request.model_dump()

    def parse_response(self, body: Any) -> CanonicalResult:
        try:
            parsed = OpenAIChatResponse.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Unexpected OpenAI response shape: {e}")
            raise ProviderError("OpenAI returned an unexpected response", provider=self.provider_name) from e

        if not parsed.choices:
            raise ProviderError("OpenAI response contained no choices", provider=self.provider_name)

        message = parsed.choices[0].message
        tool_calls = [
            CanonicalToolCall(id=call.id, name=call.function.name, arguments_json=call.function.arguments)
            for call in message.tool_calls or []
        ]
        return CanonicalResult(content=message.content or "", tool_calls=tool_calls)

    async def complete(
        self,
        transcript: Sequence[Message],
        temperature: float,
        max_tokens: int,
        correlation_id: str = "",
    ) -> CanonicalResult:
        correlation_id = correlation_id or str(uuid.uuid4())
        payload = self.build_payload(transcript, temperature, max_tokens)
        body = await self._post(OpenAIEndpoints.CHAT_COMPLETIONS, correlation_id, payload)
        return self.parse_response(body)
