"""
Phraser Module
Optional LLM wording for questions and result explanations, with fixed
fallbacks so the conversation never depends on the phraser being up
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..llm.client import BaseLLMClient
from ..memory.profile import Profile
from .planner import default_question, field_for_question, field_label

logger = logging.getLogger(__name__)

CLOSING_MESSAGE = "Thank you! I have all the details. Checking eligible schemes now... 🔍"
ELIGIBLE_FALLBACK = "You are eligible for some schemes."
NO_MATCH_MESSAGE = "I couldn't find any specific schemes matching your profile at the moment."

ASK_PROMPT = """Current Profile: {profile}
Missing Field to Ask: "{label}"
Last User Message: "{last_user_message}"

Task:
1. Acknowledge the user's last input briefly (if relevant).
2. Ask for the "{label}" in a natural, conversational way and use the word "{label}" in the question.
3. Keep it short (under 2 sentences).
4. Do NOT be repetitive.
5. If asking for income, specify "annual family income".
6. If asking for occupation, give examples like Student, Labourer, Business, etc.
"""

EXPLAIN_PROMPT = """User profile: {profile}
Schemes: {schemes}

Explain eligibility briefly (max 3 sentences).
"""

# Echoed prompt fragments some models return instead of an answer
PLACEHOLDER_TEXTS = {
    "your response to the user",
    "<your response to the user>",
}


class Phraser:
    """Produces display text; every method has a deterministic fallback"""

    def __init__(self, llm_client: Optional[BaseLLMClient] = None, timeout: float = 10.0):
        self.llm_client = llm_client
        self.timeout = timeout

    async def ask(self,
                  profile: Profile,
                  field_name: str,
                  last_user_message: str = "") -> str:
        """Question for the next field"""
        fallback = default_question(field_name)
        text = await self._generate(ASK_PROMPT.format(
            profile=json.dumps(profile.known_fields(), ensure_ascii=False),
            label=field_label(field_name),
            last_user_message=last_user_message
        ))
        # The next reply is attributed by re-reading the question text, so
        # the wording must still point at the same field as the template
        if not text or field_for_question(text) != field_for_question(fallback):
            return fallback
        return text

    def closing(self) -> str:
        return CLOSING_MESSAGE

    async def explain(self, schemes: Sequence[Any], profile: Profile) -> str:
        """Short explanation of the eligibility outcome"""
        if not schemes:
            return NO_MATCH_MESSAGE
        names = [getattr(s, "name", str(s)) for s in schemes]
        text = await self._generate(EXPLAIN_PROMPT.format(
            profile=json.dumps(profile.known_fields(), ensure_ascii=False),
            schemes=", ".join(names)
        ))
        return text or ELIGIBLE_FALLBACK

    async def _generate(self, prompt: str) -> Optional[str]:
        if self.llm_client is None:
            return None
        try:
            response = await asyncio.wait_for(
                self.llm_client.generate(
                    system_prompt="You are a friendly government scheme assistant.",
                    user_message=prompt
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Phraser timed out after %ss; using template text", self.timeout)
            return None
        except Exception as e:
            logger.warning("Phraser failed (%s); using template text", e)
            return None

        text = (response or "").strip()
        if not text or text.strip("<>").strip().lower() in PLACEHOLDER_TEXTS:
            return None
        return text


def summarize_profile(profile: Profile) -> List[Dict[str, Any]]:
    """Answered fields with human labels, for display"""
    return [
        {"field": name, "label": field_label(name), "value": value}
        for name, value in profile.known_fields().items()
    ]
