"""
Test Configuration and Fixtures

Fake providers stand in for Groq and MongoDB; the FastAPI app gets them
through a dependency override, so no lifespan or network is involved.
"""
import asyncio
import json
import os
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from langchain_core.messages import AIMessage, AIMessageChunk

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("GROQ_API_KEY", "test-key")

from app.ai.tutor import TutorService  # noqa: E402
from app.api.dependencies import get_services  # noqa: E402
from app.services.ask import AskService  # noqa: E402
from app.services.container import AppServices  # noqa: E402


class FakeChatModel:
    """Records every message list it receives and replies with fixed tokens"""

    def __init__(self, tokens: Optional[List[str]] = None, fail: Optional[Exception] = None):
        self.tokens = tokens if tokens is not None else ["Four", "!"]
        self.fail = fail
        self.fail_after: Optional[int] = None
        # answers (or exceptions) for the next ainvoke calls, before falling back to tokens
        self.invoke_replies: List = []
        self.calls: List[list] = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.invoke_replies:
            reply = self.invoke_replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return AIMessage(content=reply)
        if self.fail:
            raise self.fail
        return AIMessage(content="".join(self.tokens))

    async def astream(self, messages):
        self.calls.append(messages)
        if self.fail:
            raise self.fail
        for index, token in enumerate(self.tokens):
            if self.fail_after is not None and index == self.fail_after:
                raise RuntimeError("stream interrupted")
            yield AIMessageChunk(content=token)


class FakeSpeech:
    def __init__(self):
        self.transcript = "What is the sun?"
        self.audio = b"mp3-bytes"
        self.transcribe_error: Optional[Exception] = None
        self.synthesize_error: Optional[Exception] = None
        self.synthesize_delay = 0.0
        self.transcribe_calls: List[tuple] = []
        self.synthesize_calls: List[str] = []

    async def transcribe(self, audio_bytes: bytes, speak_language: str) -> str:
        self.transcribe_calls.append((audio_bytes, speak_language))
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcript

    async def synthesize(self, text: str) -> bytes:
        self.synthesize_calls.append(text)
        if self.synthesize_delay:
            await asyncio.sleep(self.synthesize_delay)
        if self.synthesize_error:
            raise self.synthesize_error
        return self.audio


class FakeStore:
    def __init__(self):
        self.fail: Optional[Exception] = None
        self.turns: List[Dict] = []

    async def record_turn(self, **kwargs) -> None:
        if self.fail:
            raise self.fail
        self.turns.append(kwargs)


class FakeVerifier:
    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = tokens or {"good-token": "user-1"}

    def verify(self, token: str) -> Optional[str]:
        return self.tokens.get(token)


@pytest.fixture
def chat_model() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture
def speech() -> FakeSpeech:
    return FakeSpeech()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def ask_service(chat_model, speech, store) -> AskService:
    return AskService(
        speech=speech,
        tutor=TutorService(chat_model, max_history_turns=6),
        store=store,
        clean_transcript=False,
        min_audio_bytes=5000,
    )


@pytest.fixture
def app(ask_service, verifier):
    from main import app as fastapi_app

    services = AppServices(ask_service=ask_service, identity_verifier=verifier)
    fastapi_app.dependency_overrides[get_services] = lambda: services
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def ask_payload() -> Dict:
    return {
        "conversationId": "c1",
        "speakLanguage": "English",
        "answerLanguage": "English",
        "text": "What is 2+2?",
    }


def parse_frames(body: str) -> List[Dict]:
    """Split an event-stream body into its JSON frames"""
    frames = []
    for block in body.split("\n\n"):
        block = block.strip()
        if block.startswith("data: "):
            frames.append(json.loads(block[len("data: "):]))
    return frames
