"""Agents package: outline, writer and reviewer agents."""

from agents.base_agent import BaseAgent
from agents.outline_agent import OutlineAgent
from agents.writer_agent import WriterAgent
from agents.reviewer_agent import ReviewerAgent

__all__ = [
    "BaseAgent",
    "OutlineAgent",
    "WriterAgent",
    "ReviewerAgent",
]
