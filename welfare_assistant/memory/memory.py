"""
Memory System
Per-session conversation transcript and state ownership.
Sessions never share mutable state.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from .state import ConversationState


@dataclass
class ConversationTurn:
    """Single conversation turn"""
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime
    profile_update: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "profile_update": self.profile_update
        }


class ConversationMemory:
    """Sliding window of conversation turns"""

    def __init__(self, max_turns: int = 20):
        self.turns: List[ConversationTurn] = []
        self.max_turns = max_turns

    def add_turn(self,
                 role: str,
                 content: str,
                 profile_update: Optional[Dict[str, Any]] = None):
        """Add a conversation turn"""
        self.turns.append(ConversationTurn(
            role=role,
            content=content,
            timestamp=datetime.now(),
            profile_update=profile_update or {}
        ))

        if len(self.turns) > self.max_turns:
            self.turns = self.turns[-self.max_turns:]

    def get_recent_turns(self, n: int = 10) -> List[Dict[str, Any]]:
        """Get last n turns"""
        return [t.to_dict() for t in self.turns[-n:]]


class SessionMemory:
    """
    Everything one session owns: the current conversation state, the
    transcript and the lock that serializes its turns
    """

    def __init__(self, session_id: str, max_turns: int = 20):
        self.session_id = session_id
        self.state = ConversationState()
        self.conversation = ConversationMemory(max_turns=max_turns)
        self.lock = asyncio.Lock()
        self.created_at = datetime.now()
        self.last_activity = datetime.now()

    def touch(self):
        self.last_activity = datetime.now()

    def get_full_context(self) -> Dict[str, Any]:
        """Snapshot for display and debugging"""
        return {
            "session_id": self.session_id,
            "phase": self.state.phase.value,
            "profile": self.state.profile.known_fields(),
            "last_question": self.state.last_question,
            "turn_count": self.state.turn_count,
            "eligible_schemes": self.state.eligible_schemes,
            "recent_turns": self.conversation.get_recent_turns(5),
            "session_duration": (datetime.now() - self.created_at).total_seconds()
        }


class MemoryManager:
    """
    Manages multiple session memories
    Handles session creation, retrieval, and cleanup
    """

    def __init__(self, max_sessions: int = 100, session_timeout_hours: int = 24, max_turns: int = 20):
        self.sessions: Dict[str, SessionMemory] = {}
        self.max_sessions = max_sessions
        self.session_timeout = timedelta(hours=session_timeout_hours)
        self.max_turns = max_turns

    def create_session(self, session_id: str) -> SessionMemory:
        """Create new session"""
        if len(self.sessions) >= self.max_sessions:
            self._cleanup_old_sessions()

        session = SessionMemory(session_id, max_turns=self.max_turns)
        self.sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[SessionMemory]:
        """Get existing session, dropping it if it has expired"""
        session = self.sessions.get(session_id)
        if session and datetime.now() - session.last_activity > self.session_timeout:
            del self.sessions[session_id]
            return None
        return session

    def end_session(self, session_id: str):
        """End and remove session"""
        self.sessions.pop(session_id, None)

    def _cleanup_old_sessions(self):
        """Remove expired sessions"""
        now = datetime.now()
        expired = [
            sid for sid, session in self.sessions.items()
            if now - session.last_activity > self.session_timeout
        ]
        for sid in expired:
            del self.sessions[sid]

        # If still too many, remove oldest half
        if len(self.sessions) >= self.max_sessions:
            sorted_sessions = sorted(
                self.sessions.items(),
                key=lambda x: x[1].last_activity
            )
            for sid, _ in sorted_sessions[:max(1, len(sorted_sessions) // 2)]:
                del self.sessions[sid]
