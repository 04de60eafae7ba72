"""
Conversation state snapshot
One immutable value per turn; the orchestrator replaces it wholesale
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .profile import Profile


class ConversationPhase(str, Enum):
    """Lifecycle phases of an eligibility conversation"""
    COLLECTING = "collecting"
    EVALUATING = "evaluating"
    DONE = "done"


class ConversationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: Profile = Field(default_factory=Profile)
    phase: ConversationPhase = ConversationPhase.COLLECTING
    last_question: Optional[str] = None
    turn_count: int = 0
    # Display rows of the last evaluation, rules omitted
    eligible_schemes: List[Dict[str, Any]] = Field(default_factory=list)
    catalog_failed: bool = False

    def evolve(self, **changes: Any) -> "ConversationState":
        return self.model_copy(update=changes)
