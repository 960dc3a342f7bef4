"""LangGraph StateGraph: orchestrates the educational content pipeline."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END

from config.exceptions import (
    GenerationExhaustedError,
    ProgressError,
    ResearchError,
    ValidationError,
    WorkflowCancelledError,
)
from config.settings import Settings, get_settings
from models.book import (
    BookContent,
    ChapterPlan,
    GeneratedChapter,
    PublishResult,
    RenderedBook,
    ReviewOutcome,
    RunRequest,
)
from models.enums import RunOutcome, Stage
from models.progress import ChapterCompletion, utc_now
from models.progress_store import ProgressStore
from tools.text_utils import truncate_text

from workflow.callbacks import LoggingCallback, WorkflowCallback
from workflow.cancellation import CancellationToken
from workflow.outline_parser import parse_outline
from workflow.publication_gate import extract_quality_score, rejection_reason
from workflow.section_generator import SectionGenerator, SectionPromptContext
from workflow.state import EduContentState

logger = logging.getLogger(__name__)

# Research text is capped before it goes into the outline prompt
_RESEARCH_BRIEF_CHARS = 1500


class BookRendererLike(Protocol):
    def render(self, book: BookContent) -> RenderedBook: ...


@dataclass
class PipelineAgents:
    """The model-backed collaborators a run needs."""
    outline: Any
    writer: Any
    reviewer: Any
    researcher: Any = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineAgents":
        from agents.outline_agent import OutlineAgent
        from agents.reviewer_agent import ReviewerAgent
        from agents.writer_agent import WriterAgent
        from tools.agent_sdk_client import AgentSDKClient
        from tools.research import Researcher

        llm = AgentSDKClient(settings)
        return cls(
            outline=OutlineAgent(llm_client=llm, settings=settings),
            writer=WriterAgent(llm_client=llm, settings=settings),
            reviewer=ReviewerAgent(llm_client=llm, settings=settings),
            researcher=Researcher(timeout=settings.research_timeout) if settings.research_enabled else None,
        )


@dataclass
class RunContext:
    """Collaborators and controls for one run, passed to every node."""
    run_id: str
    request: RunRequest
    settings: Settings
    store: ProgressStore
    agents: PipelineAgents
    renderer: BookRendererLike
    callback: WorkflowCallback = field(default_factory=LoggingCallback)
    cancel_token: CancellationToken = field(default_factory=CancellationToken)
    section_generator: Optional[SectionGenerator] = None

    def __post_init__(self):
        if self.section_generator is None:
            self.section_generator = SectionGenerator(
                self.agents.writer.generate,
                retry_attempts=self.settings.retry_attempts,
                backoff_base_ms=self.settings.backoff_base_ms,
                backoff_max_ms=self.settings.backoff_max_ms,
            )


@dataclass
class StartedRun:
    """Handle returned by ``start_run``."""
    run_id: str
    task: asyncio.Task
    cancel_token: CancellationToken


def new_run_id() -> str:
    """Unique run id: ``edu-{epoch_ms}-{9 random chars}``."""
    return f"edu-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def make_request(
    topic: Optional[str] = None,
    target_audience: Optional[str] = None,
    target_word_count: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> RunRequest:
    """Build a run request, filling omitted fields from settings."""
    settings = settings or get_settings()
    topic = settings.default_topic if topic is None else topic
    if not topic.strip():
        raise ValidationError("Topic is required")
    return RunRequest.create(
        topic=topic,
        target_audience=settings.default_audience if target_audience is None else target_audience,
        target_word_count=(
            settings.default_target_word_count if target_word_count is None else target_word_count
        ),
    )


def _context(config: RunnableConfig) -> RunContext:
    return config["configurable"]["run_context"]


# ---------------------------------------------------------------------------
# Node functions
# ---------------------------------------------------------------------------

async def _research_brief(ctx: RunContext) -> str:
    researcher = ctx.agents.researcher
    if researcher is None or not ctx.settings.research_enabled:
        return ""

    parts = []
    try:
        note = await researcher.wikipedia_summary(ctx.request.topic)
        parts.append(note.content)
    except ResearchError as e:
        logger.warning("Wikipedia research skipped for %s: %s", ctx.run_id, e)

    for url in ctx.settings.research_urls:
        try:
            note = await researcher.fetch_page(url)
        except ResearchError as e:
            logger.warning("Research page skipped for %s: %s", ctx.run_id, e)
            continue
        parts.append(f"{note.title}: {note.content}")

    return truncate_text("\n\n".join(parts), _RESEARCH_BRIEF_CHARS)


async def plan(state: EduContentState, config: RunnableConfig) -> dict:
    """Research the topic, generate the outline and create the progress record."""
    logger.info("Entering node: plan")
    ctx = _context(config)
    request = ctx.request

    brief = await _research_brief(ctx)
    outline_text = await ctx.agents.outline.generate_outline(
        topic=request.topic,
        target_audience=request.target_audience,
        target_word_count=request.target_word_count,
        thread_id=f"outline-{ctx.run_id}",
        research_brief=brief,
    )
    chapters = parse_outline(outline_text, request.target_word_count)
    total_sections = sum(len(c.sections) for c in chapters)

    ctx.store.initialize(
        ctx.run_id,
        topic=request.topic,
        total_chapters=len(chapters),
        total_sections=total_sections,
        target_word_count=request.target_word_count,
        target_audience=request.target_audience,
    )
    ctx.store.update(
        ctx.run_id,
        stage=Stage.PLAN,
        current_step=f"Outline ready: {len(chapters)} chapters, {total_sections} sections",
    )
    logger.info("Planned %s: %d chapters, %d sections", ctx.run_id, len(chapters), total_sections)

    return {
        "research_brief": brief,
        "outline_text": outline_text,
        "chapters": chapters,
        "total_sections": total_sections,
    }


async def _generate_chapter(
    ctx: RunContext,
    chapter: ChapterPlan,
    outline_text: str,
    completed_sections: int,
    total_words: int,
    total_sections: int,
) -> tuple[GeneratedChapter, int, int]:
    target_words = chapter.target_words_per_section
    sections = []

    for index, section_title in enumerate(chapter.sections):
        ctx.cancel_token.raise_if_cancelled(ctx.run_id)

        prompt_context = SectionPromptContext(
            run_id=ctx.run_id,
            topic=ctx.request.topic,
            chapter_number=chapter.number,
            chapter_title=chapter.title,
            section_title=section_title,
            section_index=index,
            section_titles=chapter.sections,
            outline_text=outline_text,
            target_words=target_words,
        )
        try:
            section = await ctx.section_generator.generate_section(prompt_context)
        except GenerationExhaustedError as e:
            ctx.store.update(
                ctx.run_id,
                error=f'Failed to generate section "{section_title}": {e.last_error}',
            )
            ctx.store.fail(ctx.run_id, f"Content generation aborted in chapter {chapter.number}")
            raise

        sections.append(section)
        completed_sections += 1
        total_words += section.word_count
        ctx.store.update(
            ctx.run_id,
            completed_sections=completed_sections,
            total_words_generated=total_words,
        )
        ctx.callback.on_section_complete(
            chapter.number, section_title, completed_sections, total_sections, section.word_count,
        )

    generated = GeneratedChapter(
        number=chapter.number,
        title=chapter.title,
        content="\n\n".join(f"## {s.title}\n\n{s.content}" for s in sections),
        word_count=sum(s.word_count for s in sections),
        sections=sections,
    )
    return generated, completed_sections, total_words


async def generate(state: EduContentState, config: RunnableConfig) -> dict:
    """Generate every section of every chapter, in order."""
    logger.info("Entering node: generate")
    ctx = _context(config)
    chapters = state["chapters"]
    total_sections = state.get("total_sections", 0)
    outline_text = state.get("outline_text", "")

    ctx.store.update(ctx.run_id, stage=Stage.GENERATE, current_step="Generating content")

    generated: list[GeneratedChapter] = []
    completed_sections = 0
    total_words = 0

    try:
        for chapter in chapters:
            ctx.store.update(
                ctx.run_id,
                current_step=f"Generating Chapter {chapter.number}: {chapter.title}",
            )
            chapter_out, completed_sections, total_words = await _generate_chapter(
                ctx, chapter, outline_text, completed_sections, total_words, total_sections,
            )
            generated.append(chapter_out)
            ctx.store.update(
                ctx.run_id,
                completed_chapters=len(generated),
                chapter_completed=ChapterCompletion(
                    chapter_number=chapter_out.number,
                    title=chapter_out.title,
                    word_count=chapter_out.word_count,
                ),
            )
            ctx.callback.on_chapter_complete(chapter_out.number, len(chapters), chapter_out.word_count)
    except WorkflowCancelledError:
        reason = ctx.cancel_token.reason or "Cancelled"
        ctx.store.fail(
            ctx.run_id,
            f"Workflow cancelled after {completed_sections} sections: {reason}",
            outcome=RunOutcome.CANCELLED,
        )
        raise

    logger.info("Generated %s: %d chapters, %d words", ctx.run_id, len(generated), total_words)
    return {"generated_chapters": generated, "total_words": total_words}


def build_review_summary(chapters: list[GeneratedChapter]) -> str:
    return "\n".join(
        f"Chapter {c.number}: {c.title} ({c.word_count} words, {c.section_count} sections)"
        for c in chapters
    )


async def review(state: EduContentState, config: RunnableConfig) -> dict:
    """Score the book and decide whether it may be published."""
    logger.info("Entering node: review")
    ctx = _context(config)
    settings = ctx.settings
    chapters = state.get("generated_chapters", [])
    total_words = state.get("total_words", 0)

    ctx.store.update(ctx.run_id, stage=Stage.REVIEW, current_step="Reviewing content quality")

    sample = truncate_text(chapters[0].content, settings.review_sample_chars) if chapters else ""
    review_text = await ctx.agents.reviewer.review(
        topic=ctx.request.topic,
        target_audience=ctx.request.target_audience,
        content_summary=build_review_summary(chapters),
        total_word_count=total_words,
        sample_content=sample,
        thread_id=f"review-{ctx.run_id}",
    )

    score = extract_quality_score(review_text, settings.default_quality_score)
    reason = rejection_reason(score, review_text, settings.approval_threshold)
    outcome = ReviewOutcome(
        quality_score=score,
        approved=reason is None,
        summary=review_text,
        rejection_reason=reason,
    )
    logger.info(
        "Review for %s: score=%.1f, approved=%s%s",
        ctx.run_id, score, outcome.approved, f" ({reason})" if reason else "",
    )
    return {"review": outcome}


async def publish(state: EduContentState, config: RunnableConfig) -> dict:
    """Render the approved book, or record the rejection."""
    logger.info("Entering node: publish")
    ctx = _context(config)
    review_outcome: ReviewOutcome = state["review"]
    total_words = state.get("total_words", 0)
    chapters = state.get("generated_chapters", [])

    ctx.store.update(ctx.run_id, stage=Stage.PUBLISH, current_step="Generating final book")

    if not review_outcome.approved:
        message = (
            f"Content not approved for publication "
            f"(quality score: {review_outcome.quality_score:g}): {review_outcome.rejection_reason}"
        )
        ctx.store.fail(ctx.run_id, message, outcome=RunOutcome.REJECTED)
        return {"publish_result": PublishResult(
            book_generated=False,
            final_word_count=total_words,
            quality_score=review_outcome.quality_score,
            completed_at=utc_now().isoformat(),
            rejection_reason=review_outcome.rejection_reason,
        )}

    book = BookContent(
        topic=ctx.request.topic,
        title=f"The Complete Guide to {ctx.request.topic}",
        subtitle=ctx.settings.book_subtitle,
        author=ctx.settings.book_author,
        chapters=tuple(chapters),
    )
    try:
        rendered = await asyncio.to_thread(ctx.renderer.render, book)
    except Exception as e:
        ctx.store.fail(ctx.run_id, f"Book rendering failed: {e}")
        raise

    result = PublishResult(
        book_generated=True,
        final_word_count=total_words,
        quality_score=review_outcome.quality_score,
        completed_at=utc_now().isoformat(),
        artifact_path=rendered.path,
        file_size=rendered.file_size,
    )
    payload = result.to_dict()
    payload["chapterCount"] = rendered.chapter_count
    payload["formats"] = {rendered.format: rendered.path, **rendered.extra_paths}
    ctx.store.complete(ctx.run_id, result=payload)
    logger.info("Book published for %s: %s (%d bytes)", ctx.run_id, rendered.path, rendered.file_size)

    return {"publish_result": result, "rendered_book": rendered}


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------

_NEXT_NODE = {"plan": "generate", "generate": "review", "review": "publish"}


def build_graph():
    """Build and return the compiled LangGraph workflow."""
    graph = StateGraph(EduContentState)

    graph.add_node("plan", plan)
    graph.add_node("generate", generate)
    graph.add_node("review", review)
    graph.add_node("publish", publish)

    graph.set_entry_point("plan")
    graph.add_edge("plan", "generate")
    graph.add_edge("generate", "review")
    graph.add_edge("review", "publish")
    graph.add_edge("publish", END)

    return graph.compile()


def _fail_if_running(ctx: RunContext, message: str, outcome: RunOutcome = RunOutcome.ERROR):
    """Force a still-running record into ``failed``."""
    try:
        record = ctx.store.find(ctx.run_id)
        if record is not None and not record.is_terminal:
            ctx.store.fail(ctx.run_id, message, outcome=outcome)
    except ProgressError as store_error:
        logger.error("Could not mark %s failed: %s", ctx.run_id, store_error)


async def run_workflow(
    request: RunRequest,
    *,
    run_id: Optional[str] = None,
    settings: Optional[Settings] = None,
    store: Optional[ProgressStore] = None,
    agents: Optional[PipelineAgents] = None,
    renderer: Optional[BookRendererLike] = None,
    callback: Optional[WorkflowCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> dict:
    """Run the full pipeline for one request.

    Args:
        request: Topic, audience and target word count.
        run_id: Id for the progress record. Generated when omitted.
        settings: Settings instance. Defaults to ``get_settings()``.
        store: Progress store. Defaults to the configured SQLite file.
        agents: Outline, writer and reviewer collaborators.
        renderer: Book renderer for the publish stage.
        callback: Optional WorkflowCallback for progress reporting.
        cancel_token: Checked before every section.

    Returns:
        Final workflow state dict.
    """
    settings = settings or get_settings()
    if renderer is None:
        from publisher.book_renderer import BookRenderer
        renderer = BookRenderer.from_settings(settings)

    ctx = RunContext(
        run_id=run_id or new_run_id(),
        request=request,
        settings=settings,
        store=store or ProgressStore(settings.progress_db_path, settings.progress_overwrite_existing),
        agents=agents or PipelineAgents.from_settings(settings),
        renderer=renderer,
        callback=callback or LoggingCallback(),
        cancel_token=cancel_token or CancellationToken(),
    )

    app = build_graph()
    initial_state: EduContentState = {
        "run_id": ctx.run_id,
        "topic": request.topic,
        "target_audience": request.target_audience,
        "target_word_count": request.target_word_count,
    }
    config = {"configurable": {"run_context": ctx}}

    logger.info(
        "Starting workflow %s: topic=%s, audience=%s, words=%d",
        ctx.run_id, request.topic, request.target_audience, request.target_word_count,
    )

    try:
        final_state = await _run_with_callback(app, initial_state, config, ctx.callback)
    except asyncio.CancelledError:
        _fail_if_running(ctx, "Workflow task cancelled", RunOutcome.CANCELLED)
        raise
    except Exception as e:
        _fail_if_running(ctx, f"Workflow error: {e}")
        raise

    logger.info("Workflow %s finished", ctx.run_id)
    return final_state


async def _run_with_callback(app, initial_state: dict, config, callback: WorkflowCallback) -> dict:
    """Run the workflow using astream() and emit progress callbacks.

    Args:
        app: Compiled LangGraph application.
        initial_state: Initial workflow state.
        config: LangGraph config dict carrying the run context.
        callback: WorkflowCallback instance.

    Returns:
        Accumulated final state dict.
    """
    accumulated: dict = dict(initial_state)
    running = "plan"

    try:
        async for event in app.astream(initial_state, config=config):
            # Each event is {node_name: state_update_dict}
            for node_name, node_update in event.items():
                if isinstance(node_update, dict):
                    accumulated.update(node_update)
                callback.on_node_exit(node_name, accumulated)
                running = _NEXT_NODE.get(node_name, node_name)
    except Exception as e:
        callback.on_error(running, str(e))
        raise

    callback.on_workflow_complete(accumulated)
    return accumulated


def start_run(
    request: RunRequest,
    *,
    settings: Optional[Settings] = None,
    run_id: Optional[str] = None,
    **run_kwargs,
) -> StartedRun:
    """Schedule a run on the current event loop and return its id at once.

    Must be called from within a running loop. ``run_kwargs`` are passed
    through to ``run_workflow``.
    """
    run_id = run_id or new_run_id()
    token = run_kwargs.pop("cancel_token", None) or CancellationToken()
    task = asyncio.create_task(
        run_workflow(request, run_id=run_id, settings=settings, cancel_token=token, **run_kwargs),
        name=run_id,
    )
    logger.info("Run scheduled: %s", run_id)
    return StartedRun(run_id=run_id, task=task, cancel_token=token)
