"""
Ask Routes
Voice or text question in, tutor answer out (JSON or event stream).
"""
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from app.api.dependencies import get_ask_service, get_current_uid
from app.api.sinks import BufferedSink, StreamingSink
from app.models.ask import AskForm
from app.services.ask import AskService, parse_history
from app.services.errors import AskError, ErrorKind

logger = structlog.get_logger()

router = APIRouter()


def wants_stream(request: Request) -> bool:
    """Stream when ?stream=1 or the client accepts text/event-stream"""
    flag = request.query_params.get("stream", "").strip().lower()
    if flag in ("1", "true"):
        return True
    return "text/event-stream" in request.headers.get("accept", "").lower()


def _field(data: Dict[str, Any], name: str) -> str:
    value = data.get(name)
    return value.strip() if isinstance(value, str) else ""


async def read_ask_form(request: Request) -> AskForm:
    """Read a multipart form or a JSON body into an AskForm"""
    content_type = request.headers.get("content-type", "").lower()
    audio = None

    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
    else:
        try:
            form = await request.form()
        except HTTPException as e:
            logger.warning("Unreadable form body", detail=e.detail)
            raise AskError(ErrorKind.NO_INPUT) from e
        data = dict(form)
        upload = form.get("audio")
        if isinstance(upload, UploadFile):
            audio = await upload.read()

    return AskForm(
        conversation_id=_field(data, "conversationId"),
        speak_language=_field(data, "speakLanguage"),
        answer_language=_field(data, "answerLanguage"),
        uid=_field(data, "uid"),
        text=_field(data, "text"),
        audio=audio,
        history=parse_history(data.get("history")),
    )


@router.post("/ask")
async def ask(
    request: Request,
    ask_service: AskService = Depends(get_ask_service),
    current_uid: Optional[str] = Depends(get_current_uid),
):
    """
    Ask the tutor a question by voice or text
    """
    sink = StreamingSink() if wants_stream(request) else BufferedSink()

    try:
        form = await read_ask_form(request)
        turn = await ask_service.prepare(form, current_uid)
    except AskError as e:
        return sink.reject(e)

    return await sink.deliver(ask_service.respond(turn, sink))
