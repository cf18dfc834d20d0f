import os
import json
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import SESSION_STORE_DIR
from .logger import chat_logger
from .models import Message

STORAGE_KEY = "prompt-o-matic-conversation"

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class StorageError(Exception):
    """Raised internally when session state cannot be read or written."""
    pass


class SessionStore:
    """
    Session-scoped persistence for interview transcripts.

    Each session is one JSON document under a fixed key. Storage is best-effort:
    every failure is logged and swallowed so the conversation carries on in memory.
    """

    def __init__(self, directory: str = SESSION_STORE_DIR):
        self.directory = directory

    def _path(self, session_id: str) -> str:
        if not _SAFE_ID.match(session_id or ""):
            raise StorageError(f"Invalid session id: {session_id!r}")
        return os.path.join(self.directory, f"{session_id}.json")

    def _read(self, session_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(session_id)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (ValueError, IOError) as e:
            raise StorageError(f"Failed to load conversation: {e}") from e
        if not isinstance(document, dict):
            raise StorageError("Stored conversation is not a JSON object")
        return document.get(STORAGE_KEY)

    def _write(self, session_id: str, data: Dict[str, Any]):
        path = self._path(session_id)
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump({STORAGE_KEY: data}, f, indent=2)
        except (IOError, OSError, TypeError) as e:
            raise StorageError(f"Failed to save conversation: {e}") from e

    def save(self, session_id: str, messages: List[Message], collected_info: Optional[Dict[str, str]] = None):
        data = {
            "messages": [m.model_dump() for m in messages],
            "collectedInfo": collected_info or {},
        }
        try:
            self._write(session_id, data)
        except StorageError as e:
            chat_logger.warning(f"{e}, session_id={session_id}")

    def load(self, session_id: str) -> Optional[List[Message]]:
        """Returns the stored transcript, or None when nothing usable is stored."""
        try:
            data = self._read(session_id)
            if not data:
                return None
            return [Message.model_validate(m) for m in data.get("messages", [])]
        except (StorageError, ValidationError, AttributeError, TypeError) as e:
            chat_logger.warning(f"Ignoring stored conversation: {e}, session_id={session_id}")
            return None

    def clear(self, session_id: str):
        try:
            path = self._path(session_id)
            if os.path.exists(path):
                os.remove(path)
        except (StorageError, OSError) as e:
            chat_logger.warning(f"Failed to clear conversation: {e}, session_id={session_id}")
