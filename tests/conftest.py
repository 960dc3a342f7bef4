"""Shared pytest fixtures for the eduforge test suite."""

import re
from typing import Optional

import pytest
from unittest.mock import MagicMock, AsyncMock


# "Write EXACTLY this section in 400 words" in the writer prompt
_TARGET_RE = re.compile(r"this section in (\d+) words")

SAMPLE_OUTLINE = """Chapter 1: Getting Started
- Section 1.1: Installing the Tools
- Section 1.2: Your First Program

Chapter 2: Core Ideas
- Section 2.1: Variables
- Section 2.2: Functions
"""


# ---------------------------------------------------------------------------
# Settings / store fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        progress_db_path=tmp_path / "progress.db",
        output_dir=tmp_path / "books",
        log_dir=tmp_path / "logs",
        export_formats=["html"],
        research_enabled=False,
        llm_call_timeout=0,
    )


@pytest.fixture
def store(settings):
    """Return a ProgressStore backed by a temp SQLite file."""
    from models.progress_store import ProgressStore
    return ProgressStore(settings.progress_db_path)


@pytest.fixture
def initialized_store(store):
    """Store with one run ``run-1`` of 2 chapters / 4 sections / 1000 words."""
    store.initialize("run-1", topic="Python", total_chapters=2, total_sections=4, target_word_count=1000)
    return store


# ---------------------------------------------------------------------------
# LLM Client mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm(settings):
    """Return a MagicMock replacing AgentSDKClient."""
    llm = MagicMock()
    llm.chat = AsyncMock(return_value="word " * 40)
    llm.get_usage_summary.return_value = {"total_calls": 1}
    llm.settings = settings
    return llm


# ---------------------------------------------------------------------------
# Pipeline collaborator stubs
# ---------------------------------------------------------------------------

class StubOutlineAgent:
    def __init__(self, text: str = SAMPLE_OUTLINE):
        self.text = text
        self.calls = []

    async def generate_outline(self, topic, target_audience, target_word_count, thread_id, research_brief=""):
        self.calls.append({"topic": topic, "thread_id": thread_id, "research_brief": research_brief})
        return self.text


class StubWriterAgent:
    """Returns ``words_per_section`` words; fails on titles listed in ``fail_titles``.

    With ``words_per_section=None`` it writes the target named in the prompt.
    """

    def __init__(self, words_per_section: Optional[int] = 50, fail_titles: tuple = ()):
        self.words_per_section = words_per_section
        self.fail_titles = fail_titles
        self.thread_ids = []

    async def generate(self, prompt, thread_id):
        self.thread_ids.append(thread_id)
        for title in self.fail_titles:
            if f'Write the content for "{title}"' in prompt:
                raise RuntimeError("model unavailable")
        words = self.words_per_section
        if words is None:
            words = int(_TARGET_RE.search(prompt).group(1))
        return " ".join(["word"] * words)


class StubReviewerAgent:
    def __init__(self, text: str = "Overall quality score: 8.5. Approved for publication."):
        self.text = text
        self.calls = []

    async def review(self, topic, target_audience, content_summary, total_word_count, sample_content, thread_id):
        self.calls.append({
            "summary": content_summary,
            "total_word_count": total_word_count,
            "sample": sample_content,
            "thread_id": thread_id,
        })
        return self.text


class StubRenderer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.books = []

    def render(self, book):
        from config.exceptions import RenderingError
        from models.book import RenderedBook
        if self.fail:
            raise RenderingError("disk full")
        self.books.append(book)
        return RenderedBook(
            title=book.title,
            path="/tmp/book.html",
            file_size=1234,
            chapter_count=len(book.chapters),
            generated_at="2026-01-01T00:00:00+00:00",
        )


@pytest.fixture
def stub_agents():
    from workflow.graph import PipelineAgents
    return PipelineAgents(
        outline=StubOutlineAgent(),
        writer=StubWriterAgent(),
        reviewer=StubReviewerAgent(),
    )


@pytest.fixture
def stub_renderer():
    return StubRenderer()


@pytest.fixture
def no_sleep():
    """AsyncMock standing in for asyncio.sleep; records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def stubs():
    """Stub collaborator classes, for tests that need custom variants."""
    from types import SimpleNamespace
    return SimpleNamespace(
        Outline=StubOutlineAgent,
        Writer=StubWriterAgent,
        Reviewer=StubReviewerAgent,
        Renderer=StubRenderer,
    )
