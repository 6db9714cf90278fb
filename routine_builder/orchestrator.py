"""Chat orchestration for free-text questions and routine generation.

Role:
    Owns the two-state chat machine and the visible chat transcript. Every
    outbound call carries the whole conversation log; replies and failures are
    turned into rendered ChatEvents so no error leaves a turn.

State machine:
    idle --submit_question / generate_routine--> awaiting_reply
    awaiting_reply --reply, service error, or transport error--> idle

    Routine generation with nothing selected and blank questions never leave
    idle. A submission while awaiting_reply raises ChatBusyError; nothing is
    queued.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, List, Optional

from .chat_client import ChatClient
from .conversation import ConversationLog
from .errors import ChatBusyError, LoadError, ServiceError, TransportError
from .models import ChatEvent, EventKind, Product
from .render import (
    PENDING_TEXT,
    THINKING_TEXT,
    render_error,
    render_message,
    render_notice,
    render_pending,
)
from .selection import SelectionManager

logger = logging.getLogger("routine_builder.chat")

IDLE = "idle"
AWAITING_REPLY = "awaiting_reply"

SELECT_FIRST_TEXT = "Please select at least one product first."
CONNECTION_ERROR_TEXT = "⚠️ Could not connect to AI server."
CATALOG_ERROR_TEXT = "Products are unavailable right now, so a routine cannot be generated."
ROUTINE_PROMPT_PREFIX = "Create a routine using these products: "


def build_routine_prompt(products: List[Product]) -> str:
    """Purpose: Build the user message that asks for a routine.
    Inputs/Outputs: Input is the selected products; output is the prompt text
        embedding a JSON summary of name, brand, category and description.
    Side Effects / State: None; pure function.
    Dependencies: Uses json.dumps.
    Failure Modes: None.
    If Removed: The assistant never learns which products were chosen.
    Testing Notes: Each selected product appears once, in the given order.
    """
    summary = [
        {
            "name": product.name,
            "brand": product.brand,
            "category": product.category,
            "description": product.description,
        }
        for product in products
    ]
    return ROUTINE_PROMPT_PREFIX + json.dumps(summary, ensure_ascii=False)


class ChatOrchestrator:
    def __init__(
        self,
        conversation: ConversationLog,
        selection: SelectionManager,
        catalog: Callable[[], List[Product]],
        client: ChatClient,
    ) -> None:
        """Purpose: Wire the orchestrator to its log, selection, catalog, and client.
        Inputs/Outputs: Inputs are the ConversationLog, SelectionManager, a catalog
            loader callable, and the ChatClient; no return value.
        Side Effects / State: Starts idle with an empty transcript.
        Dependencies: None at init.
        Failure Modes: None.
        If Removed: Chat and routine endpoints have nothing to drive.
        Testing Notes: Build with a ChatClient on httpx.MockTransport.
        """
        self._conversation = conversation
        self._selection = selection
        self._catalog = catalog
        self._client = client
        self._state = IDLE
        self._pending: Optional[ChatEvent] = None
        self._transcript: List[ChatEvent] = []

    @property
    def state(self) -> str:
        return self._state

    @property
    def can_submit(self) -> bool:
        return self._state == IDLE

    @property
    def pending(self) -> Optional[ChatEvent]:
        return self._pending

    @property
    def transcript(self) -> List[ChatEvent]:
        """Visible chat window: settled events plus the pending indicator, if any."""
        events = list(self._transcript)
        if self._pending is not None:
            events.append(self._pending)
        return events

    async def submit_question(self, text: str) -> List[ChatEvent]:
        """Purpose: Send a free-text question as the next user turn.
        Inputs/Outputs: Input is the raw question; output is the events appended
            to the chat window (user message, then reply or error).
        Side Effects / State: Appends to the log and transcript; one outbound call.
        Dependencies: Uses _run_turn.
        Failure Modes: Raises ChatBusyError while awaiting_reply; blank input is
            ignored and returns no events.
        If Removed: Follow-up questions cannot be asked.
        Testing Notes: The user message is logged before the call is issued.
        """
        question = (text or "").strip()
        if not question:
            return []
        self._ensure_idle()
        self._conversation.append_user(question)
        events = [self._append_event("user", question, render_message("user", question))]
        logger.info("chat question length=%d messages=%d", len(question), len(self._conversation))
        events.extend(await self._run_turn(THINKING_TEXT))
        return events

    async def generate_routine(self) -> List[ChatEvent]:
        """Purpose: Ask the assistant for a routine built from the selection.
        Inputs/Outputs: No inputs; output is the events appended to the chat window.
        Side Effects / State: Appends the routine prompt to the log and issues one
            outbound call, unless nothing is selected.
        Dependencies: Uses build_routine_prompt and _run_turn.
        Failure Modes: Raises ChatBusyError while awaiting_reply. An empty
            selection or an unloadable catalog yields a notice, no call.
        If Removed: The "Generate Routine" button does nothing.
        Testing Notes: An empty selection must never reach the client.
        """
        self._ensure_idle()
        try:
            products = self._selection.selected_products(self._catalog())
        except LoadError as exc:
            logger.warning("routine skipped reason=catalog error=%s", exc)
            return [self._append_event("error", CATALOG_ERROR_TEXT, render_error(CATALOG_ERROR_TEXT))]
        if not products:
            logger.info("routine rejected reason=empty-selection")
            return [self._append_event("notice", SELECT_FIRST_TEXT, render_notice(SELECT_FIRST_TEXT))]

        self._conversation.append_user(build_routine_prompt(products))
        logger.info("routine requested products=%s", [product.id for product in products])
        return await self._run_turn(PENDING_TEXT)

    async def _run_turn(self, pending_text: str) -> List[ChatEvent]:
        # Busy flag is set before the first await so overlapping requests see it.
        self._state = AWAITING_REPLY
        self._pending = ChatEvent(kind="pending", text=pending_text, html=render_pending(pending_text))
        reply: Optional[str] = None
        error_text = CONNECTION_ERROR_TEXT
        try:
            reply = await self._client.complete(self._conversation.as_payload())
        except ServiceError as exc:
            error_text = exc.message
        except TransportError as exc:
            logger.warning("chat turn failed reason=transport error=%s", exc)
        except Exception:
            logger.exception("chat turn failed reason=unexpected")
        finally:
            self._pending = None
            self._state = IDLE

        if reply is None:
            return [self._append_event("error", error_text, render_error(error_text))]
        self._conversation.append_assistant(reply)
        logger.info("chat reply length=%d messages=%d", len(reply), len(self._conversation))
        return [self._append_event("assistant", reply, render_message("assistant", reply))]

    def _ensure_idle(self) -> None:
        if self._state != IDLE:
            logger.info("chat submission rejected state=%s", self._state)
            raise ChatBusyError("A reply is still being generated")

    def _append_event(self, kind: EventKind, text: str, html: str) -> ChatEvent:
        event = ChatEvent(kind=kind, text=text, html=html)
        self._transcript.append(event)
        return event
