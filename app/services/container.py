"""
Process-wide services
Built once at startup and handed to request handlers through dependencies.
"""
from dataclasses import dataclass
from typing import Optional

from langchain_groq import ChatGroq
from openai import AsyncOpenAI

from app.ai.tutor import TutorService
from app.config import Settings
from app.services.ask import AskService
from app.services.history import ConversationStore
from app.services.identity import IdentityVerifier
from app.services.speech import SpeechService


@dataclass
class AppServices:
    ask_service: AskService
    identity_verifier: Optional[IdentityVerifier] = None


def build_services(settings: Settings, store: Optional[ConversationStore] = None) -> AppServices:
    speech_client = AsyncOpenAI(
        api_key=settings.GROQ_API_KEY,
        base_url=settings.GROQ_BASE_URL,
    )
    llm = ChatGroq(
        model=settings.GROQ_MODEL,
        groq_api_key=settings.GROQ_API_KEY,
        temperature=settings.GROQ_TEMPERATURE,
    )

    ask_service = AskService(
        speech=SpeechService(
            client=speech_client,
            stt_model=settings.STT_MODEL,
            tts_model=settings.TTS_MODEL,
            tts_voice=settings.TTS_VOICE,
            tts_format=settings.TTS_FORMAT,
        ),
        tutor=TutorService(llm, max_history_turns=settings.MAX_HISTORY_TURNS),
        store=store,
        clean_transcript=settings.CLEAN_TRANSCRIPT,
        min_audio_bytes=settings.MIN_AUDIO_BYTES,
    )
    return AppServices(
        ask_service=ask_service,
        identity_verifier=IdentityVerifier.from_credentials(settings.IDENTITY_CREDENTIALS_JSON),
    )
