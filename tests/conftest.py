"""
Shared pytest fixtures for the eligibility assistant tests.

External services are replaced by scripted LLM clients and the in-memory
catalog, so no test touches the network.
"""
import pytest

from welfare_assistant.agent import EligibilityAssistant, Phraser, ProfileExtractor
from welfare_assistant.llm import MockLLMClient
from welfare_assistant.memory import MemoryManager, Profile
from welfare_assistant.tools import EligibilityRule, Scheme, StaticCatalogProvider


@pytest.fixture
def extractor_llm():
    """Scripted client behind the extractor; queue one reply per turn"""
    return MockLLMClient()


@pytest.fixture
def catalog_provider():
    return StaticCatalogProvider()


@pytest.fixture
def assistant(extractor_llm, catalog_provider):
    """Assistant with a scripted extractor and template-only phrasing"""
    return EligibilityAssistant(
        catalog_provider=catalog_provider,
        memory_manager=MemoryManager(max_sessions=10),
        extractor=ProfileExtractor(extractor_llm, timeout=1.0),
        phraser=Phraser(None)
    )


@pytest.fixture
def farmer_profile():
    return Profile(
        age=25,
        gender="male",
        state="Maharashtra",
        occupation="farmer",
        income=200000,
        is_farmer=True
    )


@pytest.fixture
def maharashtra_farmer_scheme():
    return Scheme(
        id="farmer_support",
        name="Farmer Support",
        rules=[EligibilityRule(
            min_age=18,
            max_age=60,
            requires_farmer=True,
            applicable_states=["maharashtra"]
        )]
    )
