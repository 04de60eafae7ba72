"""
Eligibility Assistant Configuration Settings
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional
from enum import Enum


class LLMProvider(str, Enum):
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    MOCK = "mock"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # LLM Settings
    llm_provider: LLMProvider = Field(default=LLMProvider.OPENROUTER, alias="LLM_PROVIDER")
    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    llm_model: str = Field(default="google/gemini-2.0-flash-001", alias="LLM_MODEL")
    
    # Ollama Settings (Free Local LLM)
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")
    ollama_model: str = Field(default="llama3.2", alias="OLLAMA_MODEL")
    
    # External call budgets
    extractor_timeout_seconds: float = Field(default=15.0, alias="EXTRACTOR_TIMEOUT_SECONDS")
    phraser_timeout_seconds: float = Field(default=10.0, alias="PHRASER_TIMEOUT_SECONDS")
    
    # Catalog provider
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")
    catalog_timeout_seconds: float = Field(default=20.0, alias="CATALOG_TIMEOUT_SECONDS")
    catalog_file: Optional[str] = Field(default=None, alias="CATALOG_FILE")
    
    # Sessions
    max_sessions: int = Field(default=100, alias="MAX_SESSIONS")
    session_timeout_hours: int = Field(default=24, alias="SESSION_TIMEOUT_HOURS")
    memory_window_size: int = Field(default=20, alias="MEMORY_WINDOW_SIZE")
    
    # Server Settings
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def has_supabase(self) -> bool:
        """True when a remote catalog is configured"""
        return bool(self.supabase_url and self.supabase_anon_key)


# Global settings instance
settings = Settings()
