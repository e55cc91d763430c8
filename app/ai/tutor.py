"""
Tutor Service
Builds the kids-tutor prompt and talks to the chat model (ChatGroq).
"""
from __future__ import annotations

from typing import AsyncIterator, List

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from app.models.ask import HistoryMessage

logger = structlog.get_logger()


def tutor_instructions(answer_language: str) -> str:
    return (
        f"You are a {answer_language} kids e-learning helper for Indian kids. "
        "Use very simple words, short sentences, warm tone. "
        "Use chat history for continuity and clarify doubts with tiny examples. "
        f"Avoid adult/harmful content. Always answer in {answer_language}."
    )


class TutorService:
    """Kids tutor on top of a LangChain chat model"""

    def __init__(self, llm: BaseChatModel, max_history_turns: int = 6):
        self.llm = llm
        self.max_history_turns = max_history_turns

    def build_messages(
        self,
        answer_language: str,
        history: List[HistoryMessage],
        user_text: str,
    ) -> List[BaseMessage]:
        messages: List[BaseMessage] = [SystemMessage(content=tutor_instructions(answer_language))]

        # fixed window: last N exchanges, no summarisation
        window = history[-self.max_history_turns * 2:] if self.max_history_turns > 0 else []
        for item in window:
            if item.role == "user":
                messages.append(HumanMessage(content=item.content))
            elif item.role == "assistant":
                messages.append(AIMessage(content=item.content))
            else:
                messages.append(SystemMessage(content=item.content))

        messages.append(HumanMessage(content=user_text))
        return messages

    async def reply(
        self,
        answer_language: str,
        history: List[HistoryMessage],
        user_text: str,
    ) -> str:
        messages = self.build_messages(answer_language, history, user_text)
        response = await self.llm.ainvoke(messages)
        return (response.content or "").strip()

    async def stream_reply(
        self,
        answer_language: str,
        history: List[HistoryMessage],
        user_text: str,
    ) -> AsyncIterator[str]:
        messages = self.build_messages(answer_language, history, user_text)
        async for chunk in self.llm.astream(messages):
            token = chunk.content
            if token and isinstance(token, str):
                yield token

    async def clean_transcript(self, text: str, speak_language: str) -> str:
        """
        Ask the model to fix obvious transcription errors.
        Returns the original text if the call fails or comes back empty.
        """
        messages = [
            SystemMessage(
                content=(
                    f"Fix obvious transcription errors in {speak_language} child speech. "
                    "Return only the corrected text."
                )
            ),
            HumanMessage(content=text),
        ]
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.warning("Transcript cleanup failed; keeping original", error=str(e))
            return text

        cleaned = (response.content or "").strip()
        return cleaned or text
