"""
Application Configuration
Loads and validates environment variables
"""
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Kids Learning Assistant"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # MongoDB (conversation history is disabled when unset)
    MONGODB_URL: Optional[str] = os.getenv("DB_URL")
    MONGODB_DB_NAME: str = "kids_learning"

    # Groq API (OpenAI-compatible endpoints for speech, ChatGroq for text)
    GROQ_API_KEY: str = ""
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    GROQ_TEMPERATURE: float = 0.3

    # Speech
    STT_MODEL: str = "whisper-large-v3-turbo"
    TTS_MODEL: str = "playai-tts"
    TTS_VOICE: str = "Fritz-PlayAI"
    TTS_FORMAT: str = "mp3"
    CLEAN_TRANSCRIPT: bool = False
    MIN_AUDIO_BYTES: int = 5000  # smaller uploads are treated as silent recordings

    # Conversation context
    MAX_HISTORY_TURNS: int = 6  # exchanges, i.e. 2 messages each

    # Identity provider: JSON blob with "key", "algorithms", "audience", "issuer"
    IDENTITY_CREDENTIALS_JSON: str = ""

    # CORS
    CORS_ORIGINS: str = (
        "https://elearning-for-kids.onrender.com,"
        "http://localhost:3000,"
        "http://localhost:5173"
    )
    CORS_ALLOW_CREDENTIALS: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS origins string to list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
