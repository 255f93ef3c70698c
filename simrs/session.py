"""Conversation session lifecycle.

Exactly one :class:`ConversationSession` is live per process.  The caller
owns it (``app.state.session`` in the server, a local in the CLI) and
replaces it through :func:`open_session` to start over; the old session's
conversation memory is dropped with it.  The :class:`HospitalStore` is
passed in and outlives the sessions that use it.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from simrs.agent import ChatModel, build_llm, create_dispatch_agent, run_turn
from simrs.config import ANTHROPIC_API_KEY
from simrs.models import AgentLabel, TranscriptEntry, TurnResult
from simrs.prompts import CONNECTION_ERROR_REPLY, MISSING_API_KEY_MESSAGE, WELCOME_MESSAGE
from simrs.services.store import HospitalStore
from simrs.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)


class SimrsError(Exception):
    """Base class for user-visible rejections of a chat turn."""


class SessionNotConfiguredError(SimrsError):
    """Raised on every send when no API key was configured."""


class EmptyMessageError(SimrsError):
    """Raised for blank input; the backend is never contacted."""


class SessionBusyError(SimrsError):
    """Raised when a turn is submitted while another is still running."""


class ConversationSession:
    """One conversation with the coordinator, plus its visible transcript.

    ``llm`` is ``None`` when no credential is available; such a session only
    holds the notice about the missing key and rejects every send.
    """

    def __init__(self, store: HospitalStore, llm: ChatModel | None) -> None:
        self.store = store
        self.session_id = str(uuid.uuid4())
        self._busy = threading.Lock()
        self._agent = create_dispatch_agent(ToolExecutor(store), llm) if llm is not None else None

        opening = WELCOME_MESSAGE if self.configured else MISSING_API_KEY_MESSAGE
        self.transcript: list[TranscriptEntry] = [
            TranscriptEntry(role="model", text=opening, agent=AgentLabel.COORDINATOR)
        ]

    @property
    def configured(self) -> bool:
        return self._agent is not None

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def send_message(self, text: str) -> TurnResult:
        """Run one turn through the dispatch loop.

        Input rejections raise a :class:`SimrsError`; faults from the model
        backend propagate unchanged.  Neither touches the transcript.
        """
        if not self.configured:
            raise SessionNotConfiguredError(MISSING_API_KEY_MESSAGE)
        if not text or not text.strip():
            raise EmptyMessageError("Pesan tidak boleh kosong.")
        with self.exclusive():
            return run_turn(self._agent, self.session_id, text)

    @contextmanager
    def exclusive(self) -> Iterator[ConversationSession]:
        """Hold the busy flag for the block; raises if a turn is already running."""
        if not self._busy.acquire(blocking=False):
            raise SessionBusyError("Permintaan sebelumnya masih diproses.")
        try:
            yield self
        finally:
            self._busy.release()

    def submit(self, text: str) -> TurnResult:
        """Send a user message and record both sides in the transcript.

        Input rejections propagate and leave the transcript untouched.  A
        backend fault is logged and answered with the generic apology; the
        session stays usable for the next turn.
        """
        if not self.configured:
            raise SessionNotConfiguredError(MISSING_API_KEY_MESSAGE)
        if not text or not text.strip():
            raise EmptyMessageError("Pesan tidak boleh kosong.")
        if self.busy:
            raise SessionBusyError("Permintaan sebelumnya masih diproses.")

        user_entry = TranscriptEntry(role="user", text=text)
        position = len(self.transcript)
        self.transcript.append(user_entry)
        try:
            result = self.send_message(text)
        except SimrsError:
            del self.transcript[position]
            raise
        except Exception:
            logger.exception("Error processing chat turn in session %s", self.session_id)
            result = TurnResult(text=CONNECTION_ERROR_REPLY, agent_used=AgentLabel.COORDINATOR)

        self.transcript.append(
            TranscriptEntry(
                role="model",
                text=result.text,
                agent=result.agent_used,
                grounding_urls=result.grounding_urls,
                generated_document=result.generated_document,
            )
        )
        return result


def open_session(
    store: HospitalStore,
    api_key: str | None = None,
    llm: ChatModel | None = None,
) -> ConversationSession:
    """Create a fresh session, replacing whatever conversation came before.

    ``api_key`` defaults to ``ANTHROPIC_API_KEY`` from the environment; pass
    an empty string to force an unconfigured session.  ``llm`` overrides the
    model built from the key.
    """
    key = ANTHROPIC_API_KEY if api_key is None else api_key
    if llm is None and key:
        llm = build_llm(key)
    if llm is None:
        logger.warning("ANTHROPIC_API_KEY is not set; chat session starts unconfigured")

    session = ConversationSession(store, llm)
    logger.info("Started new session: %s", session.session_id)
    return session
