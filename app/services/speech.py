"""
Speech service
Groq STT and TTS through the OpenAI-compatible client.
"""
from __future__ import annotations

from typing import Any, Dict

import structlog
from openai import AsyncOpenAI

logger = structlog.get_logger()


# Speaking language name -> ISO-639-1 hint for the transcription model
LANGUAGE_CODES: Dict[str, str] = {
    "English": "en",
    "Hindi": "hi",
    "Tamil": "ta",
    "Telugu": "te",
    "Kannada": "kn",
    "Malayalam": "ml",
    "Marathi": "mr",
    "Gujarati": "gu",
    "Bengali": "bn",
    "Punjabi": "pa",
    "Panjabi": "pa",
}

AUDIO_FILENAME = "speech.webm"
AUDIO_CONTENT_TYPE = "audio/webm"


def transcription_prompt(language: str) -> str:
    return f"This is a child speaking {language} about school topics. Keep output in {language}."


class SpeechService:
    def __init__(
        self,
        client: AsyncOpenAI,
        stt_model: str,
        tts_model: str,
        tts_voice: str,
        tts_format: str = "mp3",
    ):
        self.client = client
        self.stt_model = stt_model
        self.tts_model = tts_model
        self.tts_voice = tts_voice
        self.tts_format = tts_format

    async def transcribe(self, audio_bytes: bytes, speak_language: str) -> str:
        params: Dict[str, Any] = {
            "model": self.stt_model,
            "file": (AUDIO_FILENAME, audio_bytes, AUDIO_CONTENT_TYPE),
            "prompt": transcription_prompt(speak_language),
        }
        language = LANGUAGE_CODES.get(speak_language)
        if language:
            params["language"] = language

        transcript = await self.client.audio.transcriptions.create(**params)
        text = (getattr(transcript, "text", None) or "").strip()
        logger.debug("Transcribed audio", size=len(audio_bytes), language=language, chars=len(text))
        return text

    async def synthesize(self, text: str) -> bytes:
        """
        Convert text to speech.
        Raises whatever the provider raises; callers decide how to degrade.
        """
        speech_response = await self.client.audio.speech.create(
            model=self.tts_model,
            voice=self.tts_voice,
            input=text,
            response_format=self.tts_format,
        )
        return speech_response.content
