"""Tests for HTML/PDF book export."""

from pathlib import Path

import pytest

from config.exceptions import RenderingError
from models.book import BookContent, GeneratedChapter
from publisher.book_renderer import BookRenderer


def _book(chapters=None) -> BookContent:
    if chapters is None:
        chapters = (
            GeneratedChapter(1, "Getting Started", content="## Install\n\nRun the <installer> & wait.", word_count=6),
            GeneratedChapter(2, "Core Ideas", content="## Variables\nNames for values.\n\n## Functions\n\nReusable code.", word_count=8),
        )
    return BookContent(
        topic="Python",
        title="The Complete Guide to Python",
        subtitle="A Comprehensive Educational Resource",
        author="AI Educational Content System",
        chapters=tuple(chapters),
    )


class TestHtml:
    def test_title_page_and_toc(self, tmp_path):
        html = BookRenderer(tmp_path).to_html(_book())
        assert "<h1>The Complete Guide to Python</h1>" in html
        assert "A Comprehensive Educational Resource" in html
        assert "AI Educational Content System" in html
        assert '<a href="#chapter-1">Chapter 1: Getting Started</a>' in html
        assert '<a href="#chapter-2">Chapter 2: Core Ideas</a>' in html

    def test_chapters_in_order_with_section_headings(self, tmp_path):
        html = BookRenderer(tmp_path).to_html(_book())
        assert html.index("<h2>Chapter 1: Getting Started</h2>") < html.index("<h2>Chapter 2: Core Ideas</h2>")
        assert "<h3>Install</h3>" in html
        assert "<h3>Variables</h3>" in html
        assert "<p>Names for values.</p>" in html
        assert "<p>Reusable code.</p>" in html

    def test_content_is_escaped(self, tmp_path):
        html = BookRenderer(tmp_path).to_html(_book())
        assert "Run the &lt;installer&gt; &amp; wait." in html


class TestRender:
    def test_writes_html_only(self, tmp_path):
        rendered = BookRenderer(tmp_path / "out", ["html"]).render(_book())

        path = Path(rendered.path)
        assert path.parent == tmp_path / "out"
        assert path.exists()
        assert path.name.startswith("The_Complete_Guide_to_Python_")
        assert path.suffix == ".html"
        assert rendered.file_size == path.stat().st_size
        assert rendered.chapter_count == 2
        assert rendered.format == "html"
        assert rendered.extra_paths == {}

    def test_writes_pdf_when_enabled(self, tmp_path):
        rendered = BookRenderer(tmp_path, ["html", "pdf"]).render(_book())

        pdf = rendered.extra_paths["pdf"]
        assert pdf.endswith(".pdf")
        with open(pdf, "rb") as f:
            assert f.read(5) == b"%PDF-"

    def test_no_chapters_raises(self, tmp_path):
        with pytest.raises(RenderingError, match="no chapters"):
            BookRenderer(tmp_path).render(_book(chapters=()))

    def test_unwritable_dir_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(RenderingError, match="Failed to write"):
            BookRenderer(blocker / "sub").render(_book())

    def test_unknown_format_rejected(self, tmp_path):
        with pytest.raises(RenderingError, match="Unsupported"):
            BookRenderer(tmp_path, ["html", "epub"])

    def test_from_settings(self, settings):
        renderer = BookRenderer.from_settings(settings)
        assert renderer.output_dir == settings.output_dir
        assert renderer.formats == ["html"]
