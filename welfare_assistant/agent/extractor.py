"""
Profile extractor adapter
Uses an LLM strictly as a parser from free text to profile fields.
The model never controls the conversation; its output is validated,
coerced and merged by the orchestrator.
"""
import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..llm.client import BaseLLMClient
from ..memory.profile import PartialProfile, Profile, coerce_partial

logger = logging.getLogger(__name__)

EXTRACTION_SYSTEM_PROMPT = """You are a strict JSON extractor.

CURRENT STATE:
{current_state}

LAST QUESTION ASKED:
"{last_question}"

RULES:
- Extract ONLY explicitly stated info
- If user answers "Yes" or "No" to the LAST QUESTION, infer the relevant field (e.g., "Are you a farmer?" + "Yes" -> isFarmer: true)
- Never guess
- Never erase fields
- Output ONLY valid JSON

FIELDS:
age: number
gender: "male" | "female" | "other"
state: string
occupation: string
income: number (Annual income in INR)
income_type: "individual" | "family"
isFarmer: boolean
ownsLand: boolean
landSize: number (Acres)
maritalStatus: "single" | "married" | "widowed" | "divorced"
caste: "sc" | "st" | "obc" | "general" | "ews"
hasDisability: boolean
isStudent: boolean
is_minority: boolean (Religion/Community status)
is_bpl: boolean (Below Poverty Line card holder)
"""

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class ExtractionFailure:
    """Why an extraction produced no usable update"""
    reason: str


ExtractionResult = Union[PartialProfile, ExtractionFailure]


def parse_extraction_payload(text: Optional[str]) -> ExtractionResult:
    """Decode the model's reply into a validated partial profile"""
    if not text or not text.strip():
        return ExtractionFailure("empty response")

    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(cleaned)
        if not match:
            return ExtractionFailure("response is not JSON")
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError:
            return ExtractionFailure("response is not JSON")

    if not isinstance(data, dict):
        return ExtractionFailure(f"expected a JSON object, got {type(data).__name__}")

    return coerce_partial(data)


class ProfileExtractor:
    """Turns one user message into a partial profile update"""

    def __init__(self, llm_client: Optional[BaseLLMClient], timeout: float = 15.0):
        self.llm_client = llm_client
        self.timeout = timeout

    async def extract_result(self,
                             user_text: str,
                             current_profile: Profile,
                             last_question: Optional[str] = None) -> ExtractionResult:
        if self.llm_client is None:
            return ExtractionFailure("no extractor configured")

        system_prompt = EXTRACTION_SYSTEM_PROMPT.format(
            current_state=json.dumps(current_profile.to_wire(), ensure_ascii=False),
            last_question=last_question or "None"
        )

        try:
            response = await asyncio.wait_for(
                self.llm_client.generate(
                    system_prompt=system_prompt,
                    user_message=user_text,
                    response_format={"type": "json_object"},
                    temperature=0
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            return ExtractionFailure(f"timed out after {self.timeout}s")
        except Exception as e:
            return ExtractionFailure(f"transport error: {e}")

        return parse_extraction_payload(response)

    async def extract(self,
                      user_text: str,
                      current_profile: Profile,
                      last_question: Optional[str] = None) -> PartialProfile:
        """Fail-soft extraction: any failure yields an empty update"""
        result = await self.extract_result(user_text, current_profile, last_question)
        if isinstance(result, ExtractionFailure):
            logger.warning("Profile extraction failed: %s", result.reason)
            return {}
        logger.debug("Extracted profile update: %s", result)
        return result
