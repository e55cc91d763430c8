"""
User-facing error kinds for the ask pipeline
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    MISSING_CONVERSATION = "missing_conversation"
    MISSING_LANGUAGE = "missing_language"
    UNAUTHENTICATED = "unauthenticated"
    NO_INPUT = "no_input"
    AUDIO_TOO_SHORT = "audio_too_short"
    INVALID_LANGUAGE = "invalid_language"
    PROCESSING_FAILED = "processing_failed"


_STATUS_CODES = {
    ErrorKind.MISSING_CONVERSATION: 400,
    ErrorKind.MISSING_LANGUAGE: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NO_INPUT: 400,
    ErrorKind.AUDIO_TOO_SHORT: 400,
    ErrorKind.INVALID_LANGUAGE: 400,
    ErrorKind.PROCESSING_FAILED: 500,
}

_MESSAGES = {
    ErrorKind.MISSING_CONVERSATION: "No conversationId.",
    ErrorKind.MISSING_LANGUAGE: "Please select both Speaking and Answer languages.",
    ErrorKind.UNAUTHENTICATED: "UID does not match.",
    ErrorKind.NO_INPUT: "No valid audio or text provided.",
    ErrorKind.AUDIO_TOO_SHORT: "Audio too short. Please record at least 1 second.",
    ErrorKind.INVALID_LANGUAGE: "Unsupported language code.",
    ErrorKind.PROCESSING_FAILED: "Something went wrong while processing input.",
}


class AskError(Exception):
    """A request failure that is reported to the caller as {error, message}"""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.status_code = _STATUS_CODES[kind]
        self.message = message or _MESSAGES[kind]
        super().__init__(self.message)


def _provider_message(exc: Exception) -> str:
    # openai.APIStatusError keeps the provider's text in .message and .body
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        detail = body.get("error", body)
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
    return str(getattr(exc, "message", None) or exc)


def classify_provider_error(exc: Exception) -> AskError:
    """Map a provider failure onto the closest known error kind."""
    if isinstance(exc, AskError):
        return exc

    msg = _provider_message(exc).lower()
    if "shorter than" in msg or "too short" in msg:
        return AskError(ErrorKind.AUDIO_TOO_SHORT)
    if "invalid" in msg and "language" in msg:
        return AskError(ErrorKind.INVALID_LANGUAGE)
    return AskError(ErrorKind.PROCESSING_FAILED)
