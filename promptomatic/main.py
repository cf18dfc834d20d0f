from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Dict
import uuid

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse, Response
import uvicorn

from .config import ConfigurationError, ProviderConfig
from .contracts.endpoints import InterviewEndpoints
from .logger import chat_logger
from .models import ChatRequest, ChatResponse, ErrorResponse, InterviewMessageBody, InterviewSnapshot
from .orchestrator import InterviewOrchestrator, InterviewStateError
from .provider_client import ProviderError
from .router import ProviderRouter
from .storage import SessionStore


@lru_cache(maxsize=1)
def get_router() -> ProviderRouter:
    """The process-wide router, built from the environment on first use."""
    return ProviderRouter(ProviderConfig.from_env())


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    return SessionStore()


# Interviews live for the lifetime of the process; transcripts are mirrored to the session store
interviews: Dict[str, InterviewOrchestrator] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    interviews.clear()
    if get_router.cache_info().currsize:
        await get_router().aclose()


app = FastAPI(title="Prompt-o-matic", lifespan=lifespan)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request, exc: ConfigurationError):
    chat_logger.critical(f"Configuration error: {exc}")
    return _error(500, str(exc))


async def _get_interview(
    session_id: str,
    router: ProviderRouter = Depends(get_router),
    store: SessionStore = Depends(get_session_store),
) -> InterviewOrchestrator:
    """Looks up a live interview, restoring it from the session store when it is not in memory."""
    interview = interviews.get(session_id)
    if interview is not None:
        return interview

    if store.load(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Interview {session_id} not found")

    interview = InterviewOrchestrator(router, session_id=session_id, store=store)
    await interview.start()
    interviews[session_id] = interview
    chat_logger.info(f"Restored interview {session_id} from the session store")
    return interview


@app.post(InterviewEndpoints.CHAT, response_model=ChatResponse, response_model_exclude_none=True)
async def chat(request: ChatRequest, router: ProviderRouter = Depends(get_router)):
    """
    Stateless proxy: forwards a transcript to the configured provider and
    returns its normalized reply.
    """
    if not request.messages:
        return _error(400, "Messages are required")

    correlation_id = str(uuid.uuid4())
    try:
        result = await router.route(
            request.messages, request.temperature, request.max_tokens, correlation_id=correlation_id
        )
    except (ConfigurationError, ProviderError) as e:
        chat_logger.error(f"Chat request failed: {e}, correlation_id={correlation_id}")
        return _error(500, str(e))

    chat_logger.info({
        "event": "chat_completed",
        "provider": router.provider,
        "tool_calls": len(result.tool_calls),
        "correlation_id": correlation_id,
    })
    return ChatResponse.from_result(result)


@app.post(InterviewEndpoints.INTERVIEWS, response_model=InterviewSnapshot, status_code=201)
async def create_interview(
    router: ProviderRouter = Depends(get_router),
    store: SessionStore = Depends(get_session_store),
):
    """Opens a new interview and lets the model ask its first question."""
    interview = InterviewOrchestrator(router, store=store)
    interviews[interview.session_id] = interview
    await interview.start()
    return interview.snapshot()


@app.get(InterviewEndpoints.INTERVIEW, response_model=InterviewSnapshot)
async def get_interview(interview: InterviewOrchestrator = Depends(_get_interview)):
    return interview.snapshot()


@app.post(InterviewEndpoints.MESSAGES, response_model=InterviewSnapshot)
async def send_message(body: InterviewMessageBody, interview: InterviewOrchestrator = Depends(_get_interview)):
    """
    Submits one user answer. Provider and parsing failures are reported in the
    snapshot's `error` field; only concurrent or out-of-state submissions are HTTP errors.
    """
    try:
        await interview.submit(body.content)
    except InterviewStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return interview.snapshot()


@app.post(InterviewEndpoints.RESET, response_model=InterviewSnapshot)
async def reset_interview(interview: InterviewOrchestrator = Depends(_get_interview)):
    try:
        interview.reset()
        await interview.start()
    except InterviewStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return interview.snapshot()


@app.delete(InterviewEndpoints.INTERVIEW, status_code=204)
async def delete_interview(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Drops the interview from memory and removes its stored conversation."""
    interview = interviews.get(session_id)
    if interview is not None and interview.busy:
        raise HTTPException(status_code=409, detail="Cannot delete while a reply is being generated")
    if interview is None and store.load(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Interview {session_id} not found")

    interviews.pop(session_id, None)
    store.clear(session_id)
    chat_logger.info(f"Deleted interview {session_id}")
    return Response(status_code=204)


@app.get(InterviewEndpoints.HEALTH)
def health(router: ProviderRouter = Depends(get_router)):
    return {"status": "ok", "provider": router.provider}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=80)
