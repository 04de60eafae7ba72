"""
Planner Module
Decides which profile field the assistant should ask about next
"""
from typing import Dict, List, Optional

from ..memory.profile import Profile

DONE = "done"

MANDATORY_FIELDS = ("age", "gender", "state", "occupation", "income")
OPTIONAL_FIELDS = ("caste", "marital_status")

# Fixed order in which unanswered fields are asked
FIELD_PRIORITY = MANDATORY_FIELDS + OPTIONAL_FIELDS

# Human wording for each askable field. Every label contains the keyword
# that field_for_question maps back to the same field.
FIELD_LABELS: Dict[str, str] = {
    "age": "age",
    "gender": "gender",
    "state": "state of residence",
    "occupation": "occupation",
    "income": "annual family income",
    "is_farmer": "farmer status",
    "caste": "caste category (SC/ST/OBC/General/EWS)",
    "marital_status": "marital status",
}

# First keyword found in a question decides the field it was probing
QUESTION_KEYWORDS = (
    ("age", "age"),
    ("gender", "gender"),
    ("state", "state"),
    ("farmer", "is_farmer"),
    ("occupation", "occupation"),
    ("income", "income"),
)


def _is_answered(profile: Profile, field_name: str) -> bool:
    if field_name == "income":
        return profile.income is not None or profile.income_range is not None
    return profile.is_set(field_name)


def next_field(profile: Profile) -> str:
    """
    Return the first unanswered field in priority order, or DONE.
    Occupation is asked before any separate farmer question, since the
    occupation answer usually settles farmer status too.
    """
    for field_name in FIELD_PRIORITY:
        if field_name == "occupation" and profile.is_farmer is None and profile.occupation is None:
            return "occupation"
        if not _is_answered(profile, field_name):
            return field_name
    return DONE


def missing_fields(profile: Profile) -> List[str]:
    """Unanswered fields in the order they will be asked"""
    return [f for f in FIELD_PRIORITY if not _is_answered(profile, f)]


def field_for_question(question: Optional[str]) -> Optional[str]:
    """Map the text of an emitted question back to the field it targets"""
    if not question:
        return None
    q = question.lower()
    for keyword, field_name in QUESTION_KEYWORDS:
        if keyword in q:
            return field_name
    return None


def field_label(field_name: str) -> str:
    return FIELD_LABELS.get(field_name, field_name.replace("_", " "))


def default_question(field_name: str) -> str:
    """Fixed template question used whenever the phraser is unavailable"""
    return f"Could you please tell me your {field_label(field_name)}?"
