"""
Unit tests for the conversation store write sequence.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.services.history import ConversationStore

pytestmark = pytest.mark.asyncio


async def test_writes_conversation_then_user_then_assistant():
    writes = []

    conversation_cls = MagicMock()
    conversation_cls.find_one.return_value.upsert = AsyncMock(
        side_effect=lambda *args, **kwargs: writes.append("conversation")
    )

    def make_message(**fields):
        message = MagicMock()
        message.insert = AsyncMock(side_effect=lambda: writes.append(fields["role"]))
        message.fields = fields
        return message

    message_cls = MagicMock(side_effect=make_message)

    with patch("app.services.history.Conversation", conversation_cls), patch(
        "app.services.history.ConversationMessage", message_cls
    ):
        await ConversationStore().record_turn(
            owner_id="user-1",
            conversation_id="c1",
            user_text="What is 2+2?",
            assistant_text="Four!",
            speak_language="English",
            answer_language="Hindi",
        )

    assert writes == ["conversation", "user", "assistant"]
    contents = [call.kwargs["content"] for call in message_cls.call_args_list]
    assert contents == ["What is 2+2?", "Four!"]
    assert message_cls.call_args_list[1].kwargs["answer_language"] == "Hindi"


async def test_failed_user_write_stops_sequence():
    conversation_cls = MagicMock()
    conversation_cls.find_one.return_value.upsert = AsyncMock()
    message_cls = MagicMock()
    message_cls.return_value.insert = AsyncMock(side_effect=RuntimeError("write failed"))

    with patch("app.services.history.Conversation", conversation_cls), patch(
        "app.services.history.ConversationMessage", message_cls
    ):
        with pytest.raises(RuntimeError):
            await ConversationStore().record_turn(
                owner_id="user-1",
                conversation_id="c1",
                user_text="hi",
                assistant_text="hello",
                speak_language="English",
                answer_language="English",
            )

    conversation_cls.find_one.return_value.upsert.assert_awaited_once()
    assert message_cls.call_count == 1
