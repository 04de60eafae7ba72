"""
FastAPI Server for the Eligibility Assistant
Provides REST endpoints for chat sessions, scheme browsing and one-shot
eligibility checks
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from welfare_assistant import __version__
from welfare_assistant.agent import EligibilityAssistant, missing_fields
from welfare_assistant.agent.orchestrator import scheme_row
from welfare_assistant.config import settings
from welfare_assistant.llm import LLMClientFactory
from welfare_assistant.logging_config import setup_logging
from welfare_assistant.memory import Profile
from welfare_assistant.tools import CatalogFetchError, create_provider_from_settings, search_schemes

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Government Scheme Eligibility Assistant",
    description="Conversational profile collection and rule-based scheme eligibility",
    version=__version__
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_assistant: Optional[EligibilityAssistant] = None


def get_assistant() -> EligibilityAssistant:
    """Shared assistant, built on first use from settings"""
    global _assistant
    if _assistant is None:
        _assistant = EligibilityAssistant(
            llm_client=LLMClientFactory.create_from_settings(),
            catalog_provider=create_provider_from_settings()
        )
    return _assistant


# Request/Response Models
class TextRequest(BaseModel):
    text: str
    session_id: Optional[str] = None


class SessionResponse(BaseModel):
    session_id: str
    created_at: str
    text: str
    phase: str


class AssistantResponse(BaseModel):
    text: str
    type: str
    phase: Optional[str] = None
    eligible_schemes: List[Dict[str, Any]] = []
    profile: Dict[str, Any] = {}
    requires_input: bool = True
    session_id: str


# REST Endpoints
@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "running",
        "service": "Government Scheme Eligibility Assistant",
        "version": __version__,
        "llm_provider": settings.llm_provider.value
    }


@app.post("/session/create", response_model=SessionResponse)
async def create_session(assistant: EligibilityAssistant = Depends(get_assistant)):
    """Create a new session and return its first question"""
    session_id, reply = await assistant.start_session()
    return SessionResponse(
        session_id=session_id,
        created_at=datetime.now().isoformat(),
        text=reply["text"],
        phase=reply["phase"]
    )


@app.delete("/session/{session_id}")
async def end_session(session_id: str, assistant: EligibilityAssistant = Depends(get_assistant)):
    """End a session"""
    assistant.end_session(session_id)
    return {"status": "session ended", "session_id": session_id}


@app.get("/session/{session_id}/state")
async def get_session_state(session_id: str, assistant: EligibilityAssistant = Depends(get_assistant)):
    """Get current session state"""
    session = assistant.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    context = session.get_full_context()
    context["missing_fields"] = missing_fields(session.state.profile)
    return context


@app.post("/chat/text", response_model=AssistantResponse)
async def chat_text(request: TextRequest, assistant: EligibilityAssistant = Depends(get_assistant)):
    """Process one text message; unknown or missing sessions are started fresh"""
    session_id = request.session_id
    if not session_id or assistant.get_session(session_id) is None:
        session_id, _ = await assistant.start_session()

    response = await assistant.process_input(session_id, request.text)

    return AssistantResponse(
        text=response.get("text", ""),
        type=response.get("type", "question"),
        phase=response.get("phase"),
        eligible_schemes=response.get("eligible_schemes", []),
        profile=response.get("profile", {}),
        requires_input=response.get("requires_input", True),
        session_id=session_id
    )


@app.get("/schemes")
async def get_schemes(
    q: Optional[str] = None,
    category: Optional[str] = None,
    state: Optional[str] = None,
    limit: int = 20,
    assistant: EligibilityAssistant = Depends(get_assistant)
):
    """Get list of active government schemes"""
    try:
        schemes = await assistant.catalog_provider.fetch_schemes()
    except CatalogFetchError as e:
        logger.error("Scheme listing failed: %s", e)
        raise HTTPException(status_code=503, detail="Scheme catalog unavailable")

    schemes = search_schemes(schemes, query=q, category=category)
    if state:
        wanted = state.lower()
        schemes = [
            s for s in schemes
            if not s.applicable_states or wanted in [st.lower() for st in s.applicable_states]
        ]

    return {
        "schemes": [scheme_row(s) for s in schemes[:limit]],
        "total": len(schemes),
        "filters": {"q": q, "category": category, "state": state}
    }


@app.get("/schemes/{scheme_id}")
async def get_scheme(scheme_id: str, assistant: EligibilityAssistant = Depends(get_assistant)):
    """Get one scheme with its eligibility rules"""
    try:
        scheme = await assistant.catalog_provider.fetch_scheme_details(scheme_id)
    except CatalogFetchError as e:
        logger.error("Scheme lookup failed: %s", e)
        raise HTTPException(status_code=503, detail="Scheme catalog unavailable")
    if scheme is None:
        raise HTTPException(status_code=404, detail="Scheme not found")
    return scheme.model_dump()


@app.get("/categories")
async def get_categories(assistant: EligibilityAssistant = Depends(get_assistant)):
    """Get scheme categories"""
    try:
        categories = await assistant.catalog_provider.fetch_categories()
    except CatalogFetchError as e:
        logger.error("Category listing failed: %s", e)
        raise HTTPException(status_code=503, detail="Scheme catalog unavailable")
    return {"categories": categories}


@app.post("/eligibility/evaluate")
async def evaluate_eligibility(profile: Dict[str, Any],
                               assistant: EligibilityAssistant = Depends(get_assistant)):
    """Evaluate a complete or partial profile against the catalog"""
    try:
        parsed = Profile.model_validate(profile)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    eligible, catalog_failed = await assistant.evaluate_profile(parsed)
    return {
        "eligible_schemes": [scheme_row(s) for s in eligible],
        "total": len(eligible),
        "catalog_failed": catalog_failed,
        "profile": parsed.known_fields()
    }


def run_server():
    """Run the FastAPI server"""
    import uvicorn
    uvicorn.run(
        "server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run_server()
