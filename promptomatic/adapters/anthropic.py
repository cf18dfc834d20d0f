import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import ValidationError

from promptomatic.config import ProviderConfig
from promptomatic.contracts import (
    AnthropicEndpoints,
    AnthropicMessage,
    AnthropicMessagesRequest,
    AnthropicMessagesResponse,
    AnthropicTextBlock,
    AnthropicToolUseBlock,
)
from promptomatic.models import CanonicalResult, CanonicalToolCall, Message
from promptomatic.provider_client import ProviderClient, ProviderError
from promptomatic.tools import anthropic_tool_definitions

logger = logging.getLogger(__name__)


def split_system_message(transcript: Sequence[Message]) -> Tuple[str, List[AnthropicMessage]]:
    """
    Lifts a leading system message out of the transcript and remaps every other
    message onto the user/assistant roles the Messages API accepts, keeping order.
    """
    messages = list(transcript)
    system = ""
    if messages and messages[0].role == "system":
        system = messages.pop(0).content

    remapped = [
        AnthropicMessage(role="assistant" if m.role == "assistant" else "user", content=m.content)
        for m in messages
    ]
    return system, remapped


class AnthropicAdapter(ProviderClient):
    """Messages API adapter."""

    provider_name = "anthropic"
    display_name = "Anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        api_version: str = "2023-06-01",
        base_url: str = "https://api.anthropic.com",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"x-api-key": api_key, "anthropic-version": api_version}
        super().__init__(base_url=base_url, timeout=timeout, headers=headers, transport=transport)
        self.model = model

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "AnthropicAdapter":
        return cls(
            api_key=config.anthropic_api_key,
            model=config.anthropic_model,
            api_version=config.anthropic_version,
            base_url=config.anthropic_base_url,
            timeout=config.timeout,
        )

    def build_payload(self, transcript: Sequence[Message], temperature: float, max_tokens: int) -> Dict[str, Any]:
        system, messages = split_system_message(transcript)
        request = AnthropicMessagesRequest(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=messages,
            tools=anthropic_tool_definitions(),
        )
        return request.model_dump()

    def parse_response(self, body: Any) -> CanonicalResult:
        try:
            parsed = AnthropicMessagesResponse.model_validate(body)
            text_block = next((b for b in parsed.content if b.type == "text"), None)
            tool_block = next((b for b in parsed.content if b.type == "tool_use"), None)
            text = AnthropicTextBlock.model_validate(text_block.model_dump()) if text_block else None
            tool_use = AnthropicToolUseBlock.model_validate(tool_block.model_dump()) if tool_block else None
        except ValidationError as e:
            logger.warning(f"Unexpected Anthropic response shape: {e}")
            raise ProviderError("Anthropic returned an unexpected response", provider=self.provider_name) from e

        tool_calls = []
        if tool_use:
            # The structured input object is re-encoded so both adapters hand out JSON text
            tool_calls.append(
                CanonicalToolCall(id=tool_use.id, name=tool_use.name, arguments_json=json.dumps(tool_use.input))
            )
        return CanonicalResult(content=text.text if text else "", tool_calls=tool_calls)

    async def complete(
        self,
        transcript: Sequence[Message],
        temperature: float,
        max_tokens: int,
        correlation_id: str = "",
    ) -> CanonicalResult:
        correlation_id = correlation_id or str(uuid.uuid4())
        payload = self.build_payload(transcript, temperature, max_tokens)
        body = await self._post(AnthropicEndpoints.MESSAGES, correlation_id, payload)
        return self.parse_response(body)
