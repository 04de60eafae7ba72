"""
Agent Package
Contains the conversation loop: planner, interpreter, extractor, phraser
and the orchestrator that ties them together
"""
from .core import PhaseMachine, InvalidStateTransitionError
from .planner import (
    DONE,
    MANDATORY_FIELDS,
    OPTIONAL_FIELDS,
    next_field,
    missing_fields,
    field_for_question,
    field_label,
    default_question
)
from .interpreter import interpret
from .extractor import (
    ProfileExtractor,
    ExtractionFailure,
    parse_extraction_payload
)
from .phraser import Phraser, summarize_profile
from .orchestrator import EligibilityAssistant, RETRY_MESSAGE

__all__ = [
    "PhaseMachine",
    "InvalidStateTransitionError",
    "DONE",
    "MANDATORY_FIELDS",
    "OPTIONAL_FIELDS",
    "next_field",
    "missing_fields",
    "field_for_question",
    "field_label",
    "default_question",
    "interpret",
    "ProfileExtractor",
    "ExtractionFailure",
    "parse_extraction_payload",
    "Phraser",
    "summarize_profile",
    "EligibilityAssistant",
    "RETRY_MESSAGE"
]
