"""
Deterministic answer interpreter
Recognizes unambiguous yes/no replies without calling the extractor
"""
from typing import Optional

from ..memory.profile import BOOLEAN_FIELDS, PartialProfile

AFFIRMATIVE_REPLIES = {"yes", "yeah", "yep"}
NEGATIVE_REPLIES = {"no", "nope"}

# Negations that can appear inside a longer reply
NEGATIVE_PHRASES = {
    "is_farmer": ("not a farmer",),
}


def interpret(user_text: str, expected_field: Optional[str]) -> PartialProfile:
    """Return a partial update for a plain yes/no answer to a boolean field"""
    if not expected_field or expected_field not in BOOLEAN_FIELDS:
        return {}

    msg = (user_text or "").strip().lower()

    if msg in NEGATIVE_REPLIES or any(p in msg for p in NEGATIVE_PHRASES.get(expected_field, ())):
        return {expected_field: False}

    if msg in AFFIRMATIVE_REPLIES:
        return {expected_field: True}

    return {}
