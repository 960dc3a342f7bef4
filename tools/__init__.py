"""Tools package: Agent SDK client, research fetchers, and text utilities."""

from tools.agent_sdk_client import AgentSDKClient
from tools.research import Researcher, ResearchNote, extract_page_text
from tools.text_utils import (
    count_words,
    truncate_text,
    sanitize_filename,
    collapse_whitespace,
)

__all__ = [
    "AgentSDKClient",
    "Researcher",
    "ResearchNote",
    "extract_page_text",
    "count_words",
    "truncate_text",
    "sanitize_filename",
    "collapse_whitespace",
]
