"""LangGraph workflow state definition."""

from typing import TypedDict

from models.book import ChapterPlan, GeneratedChapter, PublishResult, RenderedBook, ReviewOutcome


class EduContentState(TypedDict, total=False):
    """State shared by the plan, generate, review and publish nodes.

    Fields are grouped logically:
    - Identity: run_id
    - Request: topic, target_audience, target_word_count
    - Planning: research_brief, outline_text, chapters, total_sections
    - Generation: generated_chapters, total_words
    - Review: review
    - Publishing: publish_result, rendered_book
    """

    # Identity
    run_id: str

    # Request
    topic: str
    target_audience: str
    target_word_count: int

    # Planning
    research_brief: str
    outline_text: str        # Raw outline as returned by the model
    chapters: list[ChapterPlan]
    total_sections: int

    # Generation
    generated_chapters: list[GeneratedChapter]
    total_words: int

    # Review
    review: ReviewOutcome

    # Publishing
    publish_result: PublishResult
    rendered_book: RenderedBook
