"""
Ask service
Validates a request, resolves its input text and drives one tutor turn:
generation, optional speech synthesis and best-effort history logging.
Buffered and streamed responses share this code and differ only in the sink.
"""
from __future__ import annotations

import asyncio
import base64
import json
from typing import Any, List, Optional, Protocol

import structlog
from pydantic import ValidationError

from app.ai.tutor import TutorService
from app.models.ask import (
    AskForm,
    AskResult,
    AskTurn,
    DeltaFrame,
    HistoryMessage,
    MessageEndFrame,
    TtsErrorFrame,
    TtsFrame,
)
from app.services.errors import AskError, ErrorKind, classify_provider_error
from app.services.history import ConversationStore
from app.services.speech import SpeechService

logger = structlog.get_logger()


class ResponseSink(Protocol):
    streaming: bool

    async def partial(self, frame: Any) -> None: ...

    async def final(self, result: AskResult) -> None: ...

    async def error(self, error: AskError) -> None: ...


def parse_history(raw: Any) -> List[HistoryMessage]:
    """Accept a JSON string or a list; anything unusable becomes an empty history."""
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []

    history = []
    for item in raw:
        try:
            history.append(HistoryMessage.model_validate(item))
        except ValidationError:
            logger.debug("Dropping malformed history entry", entry=str(item)[:80])
    return history


class AskService:
    def __init__(
        self,
        speech: SpeechService,
        tutor: TutorService,
        store: Optional[ConversationStore] = None,
        clean_transcript: bool = False,
        min_audio_bytes: int = 5000,
    ):
        self.speech = speech
        self.tutor = tutor
        self.store = store
        self.clean_transcript = clean_transcript
        self.min_audio_bytes = min_audio_bytes

    async def prepare(self, form: AskForm, verified_uid: Optional[str]) -> AskTurn:
        """
        Run the validation gate and resolve the user's text.

        Checks run in order and stop at the first failure. Nothing is sent
        to a provider until the request has passed all of them.
        """
        if not form.conversation_id:
            raise AskError(ErrorKind.MISSING_CONVERSATION)
        if not form.answer_language or not form.speak_language:
            raise AskError(ErrorKind.MISSING_LANGUAGE)
        if form.uid and verified_uid and form.uid != verified_uid:
            raise AskError(ErrorKind.UNAUTHENTICATED)

        has_audio = form.audio is not None and len(form.audio) >= self.min_audio_bytes
        if not has_audio and not form.text:
            raise AskError(ErrorKind.NO_INPUT)

        if has_audio:
            try:
                user_text = await self.speech.transcribe(form.audio, form.speak_language)
            except Exception as e:
                logger.error("Transcription failed", error=str(e))
                raise classify_provider_error(e) from e
        else:
            user_text = form.text

        if self.clean_transcript and user_text:
            user_text = await self.tutor.clean_transcript(user_text, form.speak_language)

        return AskTurn(
            conversation_id=form.conversation_id,
            speak_language=form.speak_language,
            answer_language=form.answer_language,
            transcript=user_text,
            history=form.history,
            owner_id=verified_uid,
        )

    async def respond(self, turn: AskTurn, sink: ResponseSink) -> None:
        """Generate the reply and deliver every outcome through the sink."""
        try:
            if sink.streaming:
                parts = []
                async for token in self.tutor.stream_reply(
                    turn.answer_language, turn.history, turn.transcript
                ):
                    parts.append(token)
                    await sink.partial(DeltaFrame(delta=token))
                assistant_text = "".join(parts)
                await sink.partial(MessageEndFrame())
            else:
                assistant_text = await self.tutor.reply(
                    turn.answer_language, turn.history, turn.transcript
                )

            audio_base64 = await self._synthesize(assistant_text, sink)
            await self._record(turn, assistant_text)

            await sink.final(
                AskResult(
                    conversationId=turn.conversation_id,
                    transcript=turn.transcript,
                    text=assistant_text,
                    audioBase64=audio_base64,
                )
            )
        except asyncio.CancelledError:
            logger.warning(
                "Ask processing cancelled",
                conversation_id=turn.conversation_id,
                streaming=sink.streaming,
            )
            raise
        except Exception as e:
            logger.error(
                "Ask processing failed",
                conversation_id=turn.conversation_id,
                streaming=sink.streaming,
                error=str(e),
            )
            await sink.error(classify_provider_error(e))

    async def _synthesize(self, text: str, sink: ResponseSink) -> str:
        try:
            audio = await self.speech.synthesize(text)
        except Exception as e:
            logger.warning("TTS failed; returning text only", error=str(e))
            await sink.partial(TtsErrorFrame(message=str(e)))
            return ""

        audio_base64 = base64.b64encode(audio).decode("utf-8") if audio else ""
        if audio_base64:
            await sink.partial(TtsFrame(audioBase64=audio_base64))
        return audio_base64

    async def _record(self, turn: AskTurn, assistant_text: str) -> None:
        if self.store is None or not turn.owner_id:
            return
        try:
            await self.store.record_turn(
                owner_id=turn.owner_id,
                conversation_id=turn.conversation_id,
                user_text=turn.transcript,
                assistant_text=assistant_text,
                speak_language=turn.speak_language,
                answer_language=turn.answer_language,
            )
        except Exception as e:
            logger.error(
                "Failed to write conversation history",
                owner_id=turn.owner_id,
                conversation_id=turn.conversation_id,
                error=str(e),
            )
