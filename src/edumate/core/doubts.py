"""Doubt solver: free-form questions answered by the AI tutor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import structlog

from edumate.core.collaborator import Collaborator
from edumate.core.errors import ValidationError
from edumate.core.models import utc_now
from edumate.core.session import SessionController

logger = structlog.get_logger(__name__)


@dataclass
class ChatMessage:
    role: Literal["user", "model"]
    text: str
    timestamp: str = field(default_factory=utc_now)


class DoubtSolver:
    """In-memory tutoring conversation for the active student."""

    def __init__(self, collaborator: Collaborator, session: SessionController):
        self.collaborator = collaborator
        self.session = session
        profile = session.require().profile
        self.messages: list[ChatMessage] = [
            ChatMessage(
                role="model",
                text=(
                    f"Hello {profile.name}! I am your AI tutor for {profile.board} "
                    f"Class {profile.standard}. Ask me any doubt from your syllabus!"
                ),
            )
        ]

    def history_text(self) -> str:
        return "\n".join(f"{m.role}: {m.text}" for m in self.messages)

    def ask(self, question: str) -> str:
        """Send a question with the conversation so far.

        The question is kept in the history even if the tutor fails.
        """
        question = question.strip()
        if not question:
            raise ValidationError("Please type a question.", field="question")

        profile = self.session.require().profile
        history = self.history_text()
        self.messages.append(ChatMessage(role="user", text=question))

        answer = self.collaborator.solve_doubt(question, history, profile)
        self.messages.append(ChatMessage(role="model", text=answer))

        logger.info("doubts.answered", identity=profile.identity, turns=len(self.messages))
        return answer
