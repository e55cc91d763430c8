"""
Unit tests for prompt assembly and transcript cleanup.
"""
import pytest

from app.ai.tutor import TutorService
from app.models.ask import HistoryMessage
from app.services.ask import parse_history
from conftest import FakeChatModel


def test_system_instruction_uses_answer_language():
    tutor = TutorService(FakeChatModel())

    messages = tutor.build_messages("Hindi", [], "namaste")

    assert messages[0].type == "system"
    assert "Always answer in Hindi." in messages[0].content
    assert "Avoid adult/harmful content." in messages[0].content
    assert messages[-1].type == "human"


def test_history_roles_map_to_message_types():
    tutor = TutorService(FakeChatModel())
    history = [
        HistoryMessage(role="user", content="a"),
        HistoryMessage(role="assistant", content="b"),
        HistoryMessage(role="system", content="c"),
    ]

    messages = tutor.build_messages("English", history, "d")

    assert [m.type for m in messages] == ["system", "human", "ai", "system", "human"]


def test_window_size_is_configurable():
    tutor = TutorService(FakeChatModel(), max_history_turns=1)
    history = [HistoryMessage(role="user", content=str(i)) for i in range(5)]

    messages = tutor.build_messages("English", history, "next")

    assert [m.content for m in messages[1:-1]] == ["3", "4"]


def test_parse_history_drops_malformed_entries():
    raw = '[{"role": "user", "content": "hi"}, {"role": "robot", "content": "x"}, 7]'

    assert parse_history(raw) == [HistoryMessage(role="user", content="hi")]
    assert parse_history({"role": "user"}) == []
    assert parse_history(None) == []


@pytest.mark.asyncio
async def test_clean_transcript_replaces_text():
    tutor = TutorService(FakeChatModel(tokens=["What is the moon?"]))

    assert await tutor.clean_transcript("wot is da moon", "English") == "What is the moon?"


@pytest.mark.asyncio
async def test_clean_transcript_keeps_original_on_failure():
    tutor = TutorService(FakeChatModel(fail=RuntimeError("boom")))

    assert await tutor.clean_transcript("wot is da moon", "English") == "wot is da moon"


@pytest.mark.asyncio
async def test_clean_transcript_keeps_original_on_empty_reply():
    tutor = TutorService(FakeChatModel(tokens=["   "]))

    assert await tutor.clean_transcript("wot is da moon", "English") == "wot is da moon"
