import asyncio
import json
import uuid
from enum import Enum
from typing import List, Optional

from pydantic import ValidationError

from .config import ConfigurationError, DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from .logger import chat_logger
from .models import CanonicalResult, InterviewSnapshot, Message, ProjectRequirements
from .prompts import build_system_prompt, render_final_prompt
from .provider_client import ProviderError
from .router import ProviderRouter
from .storage import SessionStore
from .tools import GENERATE_FINAL_PROMPT

COMPLETION_MESSAGE = "Perfect! I have all the information I need. Generating your prompt now..."


class InterviewState(str, Enum):
    INITIALIZING = "initializing"
    AWAITING_USER = "awaiting_user"
    COMPLETE = "complete"
    ERRORED = "errored"


class ParseError(ValueError):
    """Raised when tool-call arguments are not a JSON object with every required field."""
    pass


class InterviewStateError(Exception):
    """Raised when an operation is not valid in the interview's current state."""
    pass


class TurnInProgressError(InterviewStateError):
    """Raised when a user turn is submitted while a provider call is outstanding."""
    pass


def parse_requirements(arguments_json: str) -> ProjectRequirements:
    try:
        arguments = json.loads(arguments_json)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Tool arguments are not valid JSON: {e}") from e
    if not isinstance(arguments, dict):
        raise ParseError("Tool arguments must be a JSON object")
    try:
        return ProjectRequirements.model_validate(arguments)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ParseError(f"Tool arguments are missing or have invalid fields: {fields}") from e


class InterviewOrchestrator:
    """
    Drives one requirements interview.

    The orchestrator owns its transcript exclusively and allows a single
    outstanding provider call at a time. Errors from configuration, the provider
    or tool-argument parsing are caught at the turn boundary and leave the
    interview in the ERRORED state until `reset()` is called.
    """

    def __init__(
        self,
        router: ProviderRouter,
        session_id: Optional[str] = None,
        store: Optional[SessionStore] = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self.router = router
        self.session_id = session_id or uuid.uuid4().hex
        self.store = store
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.state = InterviewState.INITIALIZING
        self.transcript: List[Message] = []
        self.requirements: Optional[ProjectRequirements] = None
        self.final_prompt: Optional[str] = None
        self.error: Optional[str] = None
        self.error_kind: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _persist(self):
        if self.store is not None:
            self.store.save(self.session_id, self.transcript)

    def _transition(self, state: InterviewState):
        chat_logger.info(
            f"Interview {self.session_id}: {self.state.value} -> {state.value}"
        )
        self.state = state

    def _fail(self, error: Exception, message: str):
        self.error = message
        self.error_kind = type(error).__name__
        chat_logger.error(f"Interview {self.session_id} failed ({self.error_kind}): {error}")
        self._transition(InterviewState.ERRORED)

    async def _call(self, transcript: List[Message]) -> CanonicalResult:
        return await self.router.route(
            transcript,
            self.temperature,
            self.max_tokens,
            correlation_id=f"{self.session_id}-{len(transcript)}",
        )

    async def start(self):
        """Restores a stored conversation or opens a new one with the system instruction."""
        if self.state != InterviewState.INITIALIZING:
            raise InterviewStateError(f"Cannot start an interview in state '{self.state.value}'")
        if self._lock.locked():
            raise TurnInProgressError("The interview is already starting")

        async with self._lock:
            saved = self.store.load(self.session_id) if self.store is not None else None
            if saved:
                self.transcript = saved
                self._transition(InterviewState.AWAITING_USER)
                return

            system_message = Message(role="system", content=build_system_prompt())
            try:
                result = await self._call([system_message])
            except (ConfigurationError, ProviderError) as e:
                self._fail(e, str(e))
                return

            self.transcript = [system_message]
            self._apply_result(result)
            if self.state == InterviewState.ERRORED:
                self.transcript = []
            else:
                self._persist()

    async def submit(self, text: str):
        """Appends a user turn, queries the provider and applies the result."""
        if self._lock.locked():
            raise TurnInProgressError("A reply is still being generated")
        if self.state != InterviewState.AWAITING_USER:
            raise InterviewStateError(f"Cannot accept a message in state '{self.state.value}'")

        async with self._lock:
            self.transcript.append(Message(role="user", content=text))
            self.error = None
            self.error_kind = None

            try:
                result = await self._call(list(self.transcript))
            except (ConfigurationError, ProviderError) as e:
                self._persist()
                self._fail(e, str(e))
                return

            self._apply_result(result)
            self._persist()

    def _apply_result(self, result: CanonicalResult):
        # A tool call wins over free text in the same turn
        call = result.first_tool_call
        if call is not None and call.name == GENERATE_FINAL_PROMPT:
            try:
                requirements = parse_requirements(call.arguments_json)
            except ParseError as e:
                self._fail(e, "Failed to process requirements. Please try again.")
                return

            self.transcript.append(Message(role="assistant", content=result.content or COMPLETION_MESSAGE))
            self.requirements = requirements
            self.final_prompt = render_final_prompt(requirements)
            self._transition(InterviewState.COMPLETE)
            return

        if call is not None:
            chat_logger.warning(f"Ignoring call to unknown tool '{call.name}' in interview {self.session_id}")
        self.transcript.append(Message(role="assistant", content=result.content))
        if self.state != InterviewState.AWAITING_USER:
            self._transition(InterviewState.AWAITING_USER)

    def reset(self):
        """Clears the conversation and returns to INITIALIZING. Call `start()` afterwards."""
        if self._lock.locked():
            raise TurnInProgressError("Cannot reset while a reply is being generated")
        self.transcript = []
        self.requirements = None
        self.final_prompt = None
        self.error = None
        self.error_kind = None
        if self.store is not None:
            self.store.clear(self.session_id)
        self._transition(InterviewState.INITIALIZING)

    def snapshot(self) -> InterviewSnapshot:
        return InterviewSnapshot(
            session_id=self.session_id,
            state=self.state.value,
            messages=[m for m in self.transcript if m.role != "system"],
            error=self.error,
            error_kind=self.error_kind,
            requirements=self.requirements,
            final_prompt=self.final_prompt,
        )
