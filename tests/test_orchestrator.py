import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import respx
from httpx import Response

from promptomatic.config import ConfigurationError, ProviderConfig
from promptomatic.models import CanonicalResult, CanonicalToolCall, Message
from promptomatic.orchestrator import (
    COMPLETION_MESSAGE,
    InterviewOrchestrator,
    InterviewState,
    InterviewStateError,
    ParseError,
    TurnInProgressError,
    parse_requirements,
)
from promptomatic.provider_client import ProviderError
from promptomatic.router import ProviderRouter
from promptomatic.storage import SessionStore

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

REQUIREMENTS_INPUT = {
    "purpose": "X",
    "targetUsers": "Y",
    "features": ["a", "b"],
    "dataModel": "Z",
    "persistence": "P",
    "userFlows": "U",
    "security": "S",
    "constraints": "C",
}


def tool_result(arguments_json, content="", name="generate_final_prompt"):
    return CanonicalResult(
        content=content,
        tool_calls=[CanonicalToolCall(id="call_1", name=name, arguments_json=arguments_json)],
    )


@pytest.fixture
def mock_router():
    """A router whose `route` coroutine returns queued results."""
    router = MagicMock(spec=ProviderRouter)
    router.route = AsyncMock(return_value=CanonicalResult(content="What are you building?"))
    return router


async def started(router, **kwargs):
    interview = InterviewOrchestrator(router, **kwargs)
    await interview.start()
    return interview


# --- parse_requirements ---

def test_parse_requirements_accepts_complete_object():
    requirements = parse_requirements(json.dumps(REQUIREMENTS_INPUT))
    assert requirements.model_dump(by_alias=True) == REQUIREMENTS_INPUT


@pytest.mark.parametrize(
    "arguments",
    [
        "{invalid",
        "[1, 2]",
        json.dumps({k: v for k, v in REQUIREMENTS_INPUT.items() if k != "security"}),
        json.dumps({**REQUIREMENTS_INPUT, "features": "not a list"}),
    ],
)
def test_parse_requirements_rejects_malformed_arguments(arguments):
    with pytest.raises(ParseError):
        parse_requirements(arguments)


# --- Initializing ---

@pytest.mark.asyncio
async def test_start_sends_system_message_alone(mock_router):
    interview = await started(mock_router)

    assert interview.state == InterviewState.AWAITING_USER
    sent = mock_router.route.await_args.args[0]
    assert len(sent) == 1
    assert sent[0].role == "system"
    assert [m.role for m in interview.transcript] == ["system", "assistant"]
    assert interview.transcript[1].content == "What are you building?"


@pytest.mark.asyncio
async def test_start_failure_moves_to_errored(mock_router):
    mock_router.route.side_effect = ProviderError("bad key", status_code=401)

    interview = await started(mock_router)

    assert interview.state == InterviewState.ERRORED
    assert interview.error == "bad key"
    assert interview.error_kind == "ProviderError"
    assert interview.transcript == []


@pytest.mark.asyncio
async def test_start_with_tool_call_completes_interview(mock_router):
    mock_router.route.return_value = tool_result(json.dumps(REQUIREMENTS_INPUT))

    interview = await started(mock_router)

    assert interview.state == InterviewState.COMPLETE
    assert interview.requirements.model_dump(by_alias=True) == REQUIREMENTS_INPUT
    assert [m.role for m in interview.transcript] == ["system", "assistant"]
    assert interview.transcript[-1].content == COMPLETION_MESSAGE


@pytest.mark.asyncio
async def test_start_with_malformed_tool_call_moves_to_errored(mock_router):
    mock_router.route.return_value = tool_result("{invalid")

    interview = await started(mock_router)

    assert interview.state == InterviewState.ERRORED
    assert interview.error_kind == "ParseError"
    assert interview.transcript == []


@pytest.mark.asyncio
async def test_start_restores_stored_conversation_without_provider_call(mock_router, tmp_path):
    store = SessionStore(str(tmp_path))
    saved = [Message(role="system", content="s"), Message(role="assistant", content="Hi")]
    store.save("session1", saved)

    interview = await started(mock_router, session_id="session1", store=store)

    assert interview.state == InterviewState.AWAITING_USER
    assert interview.transcript == saved
    mock_router.route.assert_not_awaited()


# --- Awaiting-User ---

@pytest.mark.asyncio
async def test_plain_reply_continues_interview(mock_router):
    interview = await started(mock_router)
    mock_router.route.return_value = CanonicalResult(content="Who will use it?")

    await interview.submit("A todo app")

    assert interview.state == InterviewState.AWAITING_USER
    assert [m.role for m in interview.transcript] == ["system", "assistant", "user", "assistant"]
    assert interview.transcript[-1].content == "Who will use it?"
    sent = mock_router.route.await_args.args[0]
    assert sent[-1] == Message(role="user", content="A todo app")


@pytest.mark.asyncio
async def test_tool_call_completes_interview(mock_router):
    interview = await started(mock_router)
    mock_router.route.return_value = tool_result(json.dumps(REQUIREMENTS_INPUT))

    await interview.submit("That's everything")

    assert interview.state == InterviewState.COMPLETE
    assert interview.requirements.model_dump(by_alias=True) == REQUIREMENTS_INPUT
    assert interview.transcript[-1] == Message(role="assistant", content=COMPLETION_MESSAGE)
    assert "PURPOSE:\nX" in interview.final_prompt


@pytest.mark.asyncio
async def test_tool_call_takes_precedence_over_text(mock_router):
    interview = await started(mock_router)
    mock_router.route.return_value = tool_result(json.dumps(REQUIREMENTS_INPUT), content="Any more features?")

    await interview.submit("That's everything")

    assert interview.state == InterviewState.COMPLETE
    assert interview.transcript[-1].content == "Any more features?"
    with pytest.raises(InterviewStateError):
        await interview.submit("one more thing")


@pytest.mark.asyncio
async def test_malformed_tool_arguments_move_to_errored(mock_router):
    interview = await started(mock_router)
    mock_router.route.return_value = tool_result("{invalid")

    await interview.submit("Done")

    assert interview.state == InterviewState.ERRORED
    assert interview.error_kind == "ParseError"
    assert interview.transcript[-1] == Message(role="user", content="Done")
    assert interview.requirements is None


@pytest.mark.asyncio
async def test_unknown_tool_is_treated_as_plain_reply(mock_router):
    interview = await started(mock_router)
    mock_router.route.return_value = tool_result("{}", content="Let me check.", name="lookup")

    await interview.submit("Hi")

    assert interview.state == InterviewState.AWAITING_USER
    assert interview.transcript[-1].content == "Let me check."


@pytest.mark.asyncio
async def test_provider_failure_keeps_only_the_user_message(mock_router):
    interview = await started(mock_router)
    before = list(interview.transcript)
    mock_router.route.side_effect = ProviderError("overloaded", status_code=529)

    await interview.submit("A todo app")

    assert interview.state == InterviewState.ERRORED
    assert interview.error == "overloaded"
    assert interview.transcript == before + [Message(role="user", content="A todo app")]
    with pytest.raises(InterviewStateError):
        await interview.submit("retry")


@pytest.mark.asyncio
async def test_configuration_error_is_caught_at_turn_boundary(mock_router):
    interview = await started(mock_router)
    mock_router.route.side_effect = ConfigurationError("OPENAI_API_KEY is not configured.")

    await interview.submit("hello")

    assert interview.state == InterviewState.ERRORED
    assert interview.error_kind == "ConfigurationError"


@pytest.mark.asyncio
async def test_concurrent_submission_is_rejected(mock_router):
    interview = await started(mock_router)
    release = asyncio.Event()

    async def slow_route(*args, **kwargs):
        await release.wait()
        return CanonicalResult(content="Next question")

    mock_router.route.side_effect = slow_route

    first = asyncio.create_task(interview.submit("first"))
    await asyncio.sleep(0)
    assert interview.busy

    with pytest.raises(TurnInProgressError):
        await interview.submit("second")

    release.set()
    await first
    assert [m.content for m in interview.transcript if m.role == "user"] == ["first"]


# --- Reset ---

@pytest.mark.asyncio
async def test_reset_clears_everything(mock_router, tmp_path):
    store = SessionStore(str(tmp_path))
    interview = await started(mock_router, session_id="session1", store=store)
    mock_router.route.return_value = tool_result("{invalid")
    await interview.submit("Done")

    interview.reset()

    assert interview.state == InterviewState.INITIALIZING
    assert interview.transcript == []
    assert interview.error is None
    assert store.load("session1") is None

    mock_router.route.return_value = CanonicalResult(content="Hi again")
    await interview.start()
    assert interview.state == InterviewState.AWAITING_USER


@pytest.mark.asyncio
async def test_snapshot_hides_system_message(mock_router):
    interview = await started(mock_router)

    snapshot = interview.snapshot()

    assert snapshot.state == "awaiting_user"
    assert [m.role for m in snapshot.messages] == ["assistant"]


# --- End to end through the Anthropic adapter ---

@pytest.mark.asyncio
@respx.mock
async def test_anthropic_tool_use_completes_interview():
    respx.post(ANTHROPIC_URL).mock(
        side_effect=[
            Response(200, json={"content": [{"type": "text", "text": "What are you building?"}]}),
            Response(
                200,
                json={
                    "content": [
                        {
                            "type": "tool_use",
                            "id": "toolu_1",
                            "name": "generate_final_prompt",
                            "input": REQUIREMENTS_INPUT,
                        }
                    ]
                },
            ),
        ]
    )
    router = ProviderRouter(ProviderConfig(provider="anthropic", anthropic_api_key="sk-ant-test"))

    interview = await started(router)
    await interview.submit("Everything is described above.")

    assert interview.state == InterviewState.COMPLETE
    assert interview.requirements.model_dump(by_alias=True) == REQUIREMENTS_INPUT
    await router.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_anthropic_tool_use_on_first_turn_completes_interview():
    route = respx.post(ANTHROPIC_URL).mock(
        return_value=Response(
            200,
            json={
                "content": [
                    {"type": "tool_use", "id": "toolu_1", "name": "generate_final_prompt", "input": REQUIREMENTS_INPUT}
                ]
            },
        )
    )
    router = ProviderRouter(ProviderConfig(provider="anthropic", anthropic_api_key="sk-ant-test"))

    interview = await started(router)

    assert route.call_count == 1
    assert json.loads(route.calls.last.request.content)["messages"] == []
    assert interview.state == InterviewState.COMPLETE
    assert interview.requirements.model_dump(by_alias=True) == REQUIREMENTS_INPUT
    assert interview.final_prompt.startswith("Create a web application")
    await router.aclose()
