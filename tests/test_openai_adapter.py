import json

import httpx
import pytest
import respx
from httpx import Response

from promptomatic.adapters import OpenAIAdapter
from promptomatic.models import CanonicalResult, Message
from promptomatic.provider_client import ProviderError, ProviderTimeoutError

OPENAI_URL = "https://api.openai.com/v1/chat/completions"

TRANSCRIPT = [
    Message(role="system", content="You are an interviewer."),
    Message(role="assistant", content="What are you building?"),
    Message(role="user", content="A todo app."),
]

TEXT_RESPONSE = {
    "id": "chatcmpl-1",
    "model": "gpt-4-turbo-preview",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Who will use it?"},
            "finish_reason": "stop",
        }
    ],
}

ARGUMENTS = '{"purpose": "X", "features": ["a"]}'

TOOL_RESPONSE = {
    "id": "chatcmpl-2",
    "choices": [
        {
            "index": 0,
            "message": {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "generate_final_prompt", "arguments": ARGUMENTS},
                    }
                ],
            },
            "finish_reason": "tool_calls",
        }
    ],
}


@pytest.fixture
def adapter():
    return OpenAIAdapter(api_key="sk-test")


@pytest.mark.asyncio
@respx.mock
async def test_complete_sends_transcript_unchanged(adapter):
    route = respx.post(OPENAI_URL).mock(return_value=Response(200, json=TEXT_RESPONSE))

    async with adapter as client:
        result = await client.complete(TRANSCRIPT, temperature=0.3, max_tokens=256)

    assert result == CanonicalResult(content="Who will use it?", tool_calls=[])
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer sk-test"

    body = json.loads(request.content)
    assert body["model"] == "gpt-4-turbo-preview"
    assert body["messages"] == [{"role": m.role, "content": m.content} for m in TRANSCRIPT]
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 256
    assert body["tool_choice"] == "auto"
    assert body["tools"][0]["function"]["name"] == "generate_final_prompt"


@pytest.mark.asyncio
@respx.mock
async def test_tool_call_arguments_pass_through_verbatim(adapter):
    respx.post(OPENAI_URL).mock(return_value=Response(200, json=TOOL_RESPONSE))

    result = await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)

    assert result.content == ""
    assert len(result.tool_calls) == 1
    call = result.tool_calls[0]
    assert call.id == "call_1"
    assert call.name == "generate_final_prompt"
    assert call.arguments_json == ARGUMENTS


@pytest.mark.asyncio
@respx.mock
async def test_identical_responses_yield_identical_results(adapter):
    respx.post(OPENAI_URL).mock(return_value=Response(200, json=TOOL_RESPONSE))

    first = await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)
    second = await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)

    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_text_and_tool_call_are_both_kept(adapter):
    body = json.loads(json.dumps(TOOL_RESPONSE))
    body["choices"][0]["message"]["content"] = "Here is your summary."

    result = adapter.parse_response(body)

    assert result.content == "Here is your summary."
    assert result.first_tool_call.name == "generate_final_prompt"


def test_every_tool_call_is_mapped(adapter):
    body = json.loads(json.dumps(TOOL_RESPONSE))
    second_call = {
        "id": "call_2",
        "type": "function",
        "function": {"name": "other_tool", "arguments": "{}"},
    }
    body["choices"][0]["message"]["tool_calls"].append(second_call)

    result = adapter.parse_response(body)

    assert [c.id for c in result.tool_calls] == ["call_1", "call_2"]


@pytest.mark.asyncio
@respx.mock
async def test_error_body_message_is_surfaced(adapter):
    respx.post(OPENAI_URL).mock(return_value=Response(401, json={"error": {"message": "bad key"}}))

    with pytest.raises(ProviderError) as exc_info:
        await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)

    assert str(exc_info.value) == "bad key"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
@respx.mock
async def test_unreadable_error_body_falls_back_to_generic_message(adapter):
    respx.post(OPENAI_URL).mock(return_value=Response(502, text="<html>Bad Gateway</html>"))

    with pytest.raises(ProviderError) as exc_info:
        await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)

    assert str(exc_info.value) == "OpenAI API error"


@pytest.mark.asyncio
@respx.mock
async def test_single_attempt_without_retry(adapter):
    route = respx.post(OPENAI_URL).mock(return_value=Response(500, json={"error": {"message": "overloaded"}}))

    with pytest.raises(ProviderError):
        await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)

    assert route.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_timeout_raises_provider_timeout(adapter):
    respx.post(OPENAI_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

    with pytest.raises(ProviderTimeoutError):
        await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)


@pytest.mark.asyncio
@respx.mock
async def test_connection_error_raises_provider_error(adapter):
    respx.post(OPENAI_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(ProviderError) as exc_info:
        await adapter.complete(TRANSCRIPT, temperature=0.7, max_tokens=1000)

    assert not isinstance(exc_info.value, ProviderTimeoutError)


@pytest.mark.parametrize("body", [{"choices": []}, {"choices": [{"index": 0}]}, ["not", "an", "object"]])
def test_malformed_success_body_raises_provider_error(adapter, body):
    with pytest.raises(ProviderError):
        adapter.parse_response(body)
