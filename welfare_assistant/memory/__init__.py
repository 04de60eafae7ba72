"""
Memory Package
Contains the user profile model and per-session conversation memory
"""
from .profile import (
    Profile,
    PartialProfile,
    Gender,
    IncomeType,
    MaritalStatus,
    Caste,
    IncomeRange,
    BOOLEAN_FIELDS,
    PROFILE_FIELDS,
    coerce_partial
)
from .state import ConversationPhase, ConversationState
from .memory import (
    ConversationTurn,
    ConversationMemory,
    SessionMemory,
    MemoryManager
)

__all__ = [
    "Profile",
    "PartialProfile",
    "Gender",
    "IncomeType",
    "MaritalStatus",
    "Caste",
    "IncomeRange",
    "BOOLEAN_FIELDS",
    "PROFILE_FIELDS",
    "coerce_partial",
    "ConversationPhase",
    "ConversationState",
    "ConversationTurn",
    "ConversationMemory",
    "SessionMemory",
    "MemoryManager"
]
