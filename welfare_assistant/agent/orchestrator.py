"""
Main Conversation Orchestrator
Coordinates the ask -> interpret -> merge -> plan loop and the final
eligibility evaluation
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from ..config import settings
from ..llm.client import BaseLLMClient
from ..memory.memory import MemoryManager, SessionMemory
from ..memory.profile import Profile
from ..memory.state import ConversationPhase, ConversationState
from ..tools.catalog import BaseCatalogProvider, StaticCatalogProvider, load_catalog
from ..tools.eligibility import Scheme, evaluate
from .core import PhaseMachine
from .extractor import ProfileExtractor
from .interpreter import interpret
from .phraser import Phraser
from .planner import DONE, field_for_question, next_field

logger = logging.getLogger(__name__)

GREETING = "Hello! I can help you find government schemes you may be eligible for."
RESULTS_INTRO = "Here are the schemes you might be eligible for:"
RETRY_MESSAGE = "I'm sorry, I encountered an issue while processing that. Could you please try again?"
INVALID_SESSION_MESSAGE = "This session has expired. Please start a new conversation."


def scheme_row(scheme: Scheme) -> Dict[str, Any]:
    """Display row for a scheme, without its rules"""
    return scheme.model_dump(exclude={"rules"})


class EligibilityAssistant:
    """
    Runs eligibility conversations.
    Each turn is computed as ``advance(state, text) -> (state', reply)``;
    the session's state is replaced only when the whole turn succeeds.
    """

    def __init__(self,
                 llm_client: Optional[BaseLLMClient] = None,
                 catalog_provider: Optional[BaseCatalogProvider] = None,
                 memory_manager: Optional[MemoryManager] = None,
                 extractor: Optional[ProfileExtractor] = None,
                 phraser: Optional[Phraser] = None):
        self.catalog_provider = catalog_provider or StaticCatalogProvider()
        self.memory = memory_manager or MemoryManager(
            max_sessions=settings.max_sessions,
            session_timeout_hours=settings.session_timeout_hours,
            max_turns=settings.memory_window_size
        )
        self.extractor = extractor or ProfileExtractor(
            llm_client, timeout=settings.extractor_timeout_seconds
        )
        self.phraser = phraser or Phraser(
            llm_client, timeout=settings.phraser_timeout_seconds
        )
        self.phase_machine = PhaseMachine()

    def create_session(self) -> str:
        """Create a new conversation session"""
        session_id = f"session_{uuid.uuid4().hex[:8]}"
        self.memory.create_session(session_id)
        return session_id

    def get_session(self, session_id: str) -> Optional[SessionMemory]:
        return self.memory.get_session(session_id)

    def get_profile(self, session_id: str) -> Optional[Profile]:
        """Current profile snapshot of a session"""
        session = self.get_session(session_id)
        return session.state.profile if session else None

    def end_session(self, session_id: str):
        self.memory.end_session(session_id)

    async def start_session(self) -> Tuple[str, Dict[str, Any]]:
        """Create a session and produce the greeting with the first question"""
        session_id = self.create_session()
        session = self.memory.sessions[session_id]

        field_name = next_field(session.state.profile)
        question = await self.phraser.ask(session.state.profile, field_name)
        session.state = session.state.evolve(last_question=question)

        text = f"{GREETING}\n\n{question}"
        session.conversation.add_turn("assistant", text)
        return session_id, self._reply(session.state, text, "question", field=field_name)

    async def process_input(self, session_id: str, user_input: str) -> Dict[str, Any]:
        """
        Handle one user message.
        Turns of the same session run one at a time. A failed turn leaves
        the state exactly as it was, so a session in DONE stays DONE with its
        earlier results and the next message reopens collection.
        """
        session = self.get_session(session_id)
        if session is None:
            return {
                "text": INVALID_SESSION_MESSAGE,
                "type": "error",
                "error_type": "invalid_session",
                "requires_input": True
            }

        async with session.lock:
            session.touch()
            session.conversation.add_turn("user", user_input)
            try:
                new_state, reply = await self.advance(session.state, user_input)
            except Exception:
                logger.exception("Turn failed for %s; profile left unchanged", session_id)
                session.conversation.add_turn("assistant", RETRY_MESSAGE)
                return self._reply(session.state, RETRY_MESSAGE, "error", error_type="unexpected_error")

            changed = {
                k: v for k, v in new_state.profile.known_fields().items()
                if getattr(session.state.profile, k) != v
            }
            session.state = new_state
            session.conversation.turns[-1].profile_update = changed
            session.conversation.add_turn("assistant", reply["text"])
            return reply

    async def advance(self,
                      state: ConversationState,
                      user_text: str) -> Tuple[ConversationState, Dict[str, Any]]:
        """Compute the state after one user message, without side effects on ``state``"""
        if state.phase == ConversationPhase.DONE:
            state = self.phase_machine.transition(state, ConversationPhase.COLLECTING, "input_after_results")

        expected_field = field_for_question(state.last_question)
        deterministic_updates = interpret(user_text, expected_field)
        extracted_updates = await self.extractor.extract(user_text, state.profile, state.last_question)

        # The deterministic reading wins for any field both sources set
        updates = {**extracted_updates, **deterministic_updates}
        logger.debug("Turn updates: deterministic=%s extracted=%s", deterministic_updates, extracted_updates)

        profile = state.profile.merge(updates)
        state = state.evolve(profile=profile, turn_count=state.turn_count + 1)

        field_name = next_field(profile)
        if field_name != DONE:
            question = await self.phraser.ask(profile, field_name, user_text)
            state = state.evolve(last_question=question)
            return state, self._reply(state, question, "question", field=field_name)

        state = self.phase_machine.transition(state, ConversationPhase.EVALUATING, "profile_complete")
        return await self._evaluate(state)

    async def _evaluate(self, state: ConversationState) -> Tuple[ConversationState, Dict[str, Any]]:
        snapshot = await load_catalog(self.catalog_provider)
        eligible = evaluate(state.profile, snapshot.schemes)

        if snapshot.fetch_failed:
            logger.warning("No schemes evaluated: catalog unavailable")
        else:
            logger.info("%d of %d schemes eligible", len(eligible), len(snapshot.schemes))

        explanation = await self.phraser.explain(eligible, state.profile)
        messages: List[str] = [self.phraser.closing(), explanation]
        if eligible:
            messages.append(RESULTS_INTRO)

        rows = [scheme_row(s) for s in eligible]
        state = state.evolve(
            eligible_schemes=rows,
            catalog_failed=snapshot.fetch_failed,
            last_question=None
        )
        state = self.phase_machine.transition(
            state, ConversationPhase.DONE, "evaluation_complete", {"eligible": len(rows)}
        )
        return state, self._reply(state, "\n\n".join(messages), "results", messages=messages)

    async def evaluate_profile(self, profile: Profile) -> Tuple[List[Scheme], bool]:
        """One-shot evaluation outside a conversation; also reports a failed catalog fetch"""
        snapshot = await load_catalog(self.catalog_provider)
        return evaluate(profile, snapshot.schemes), snapshot.fetch_failed

    def _reply(self,
               state: ConversationState,
               text: str,
               reply_type: str,
               **extra: Any) -> Dict[str, Any]:
        reply = {
            "text": text,
            "type": reply_type,
            "phase": state.phase.value,
            "profile": state.profile.known_fields(),
            "eligible_schemes": state.eligible_schemes if reply_type == "results" else [],
            "requires_input": state.phase != ConversationPhase.DONE
        }
        reply.update(extra)
        return reply
