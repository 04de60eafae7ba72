"""
Core Conversation Framework
Explicit phase machine for the collect -> evaluate -> done loop
"""
import logging
from typing import Any, Dict, Optional

from ..memory.state import ConversationPhase, ConversationState

logger = logging.getLogger(__name__)


class InvalidStateTransitionError(Exception):
    """Raised when an invalid phase transition is attempted"""
    pass


class PhaseMachine:
    """
    Validates phase transitions and applies them to conversation states.
    Holds no conversation data, so one instance serves every session.
    """

    VALID_TRANSITIONS = {
        ConversationPhase.COLLECTING: [ConversationPhase.EVALUATING],
        ConversationPhase.EVALUATING: [ConversationPhase.DONE, ConversationPhase.COLLECTING],
        # A correction after the results reopens collection
        ConversationPhase.DONE: [ConversationPhase.COLLECTING],
    }

    def can_transition(self, from_phase: ConversationPhase, to_phase: ConversationPhase) -> bool:
        if from_phase == to_phase:
            return True
        return to_phase in self.VALID_TRANSITIONS.get(from_phase, [])

    def transition(self,
                   state: ConversationState,
                   to_phase: ConversationPhase,
                   trigger: str,
                   metadata: Optional[Dict[str, Any]] = None) -> ConversationState:
        """Return ``state`` moved to ``to_phase``; same-phase moves are no-ops"""
        if state.phase == to_phase:
            return state
        if not self.can_transition(state.phase, to_phase):
            raise InvalidStateTransitionError(
                f"Invalid transition from {state.phase.value} to {to_phase.value}"
            )

        logger.debug("Phase %s -> %s (%s) %s", state.phase.value, to_phase.value, trigger, metadata or {})
        return state.evolve(phase=to_phase)
