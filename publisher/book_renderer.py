"""Book export: HTML always, PDF via ReportLab when enabled.

Both formats share one layout: a title page, a table of contents
listing ``Chapter N: Title`` lines, then every chapter in order.
Section headings inside chapter content are ``## `` lines.
"""

import html
import logging
from pathlib import Path
from typing import Iterable, Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer

from config.exceptions import RenderingError
from config.settings import Settings
from models.book import BookContent, RenderedBook
from models.progress import utc_now
from tools.text_utils import sanitize_filename

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("html", "pdf")

_CHAPTER_COLOR = HexColor("#2C3E50")

_HTML_STYLE = """
body { font-family: Georgia, serif; max-width: 46em; margin: 0 auto; padding: 2em; line-height: 1.6; color: #222; }
.title-page { text-align: center; margin: 6em 0; page-break-after: always; }
.title-page h1 { font-size: 2.4em; margin-bottom: 0.3em; }
.subtitle { font-style: italic; color: #555; }
.author { margin-top: 3em; }
.toc { page-break-after: always; }
.toc li { list-style: none; margin: 0.3em 0; }
.chapter { page-break-before: always; }
.chapter h2 { color: #2C3E50; }
"""


def _blocks(content: str) -> Iterable[tuple[str, str]]:
    """Yield ("heading" | "paragraph", text) blocks from chapter content."""
    for block in content.split("\n\n"):
        block = block.strip()
        if not block:
            continue
        if block.startswith("## "):
            heading, _, rest = block.partition("\n")
            yield "heading", heading[3:].strip()
            if rest.strip():
                yield "paragraph", rest.strip()
        else:
            yield "paragraph", block


class BookRenderer:
    """Writes the finished book to ``output_dir``.

    The HTML file is the primary artifact. When ``"pdf"`` is among the
    formats a PDF with the same base name is written next to it.
    """

    def __init__(self, output_dir: str | Path, formats: Optional[list[str]] = None):
        self.output_dir = Path(output_dir)
        self.formats = list(formats or ["html"])
        unknown = set(self.formats) - set(SUPPORTED_FORMATS)
        if unknown:
            raise RenderingError(f"Unsupported export format(s): {sorted(unknown)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookRenderer":
        return cls(settings.output_dir, settings.export_formats)

    def render(self, book: BookContent) -> RenderedBook:
        """Render ``book`` to disk.

        Raises:
            RenderingError: The book has no chapters or a file could not be written.
        """
        if not book.chapters:
            raise RenderingError("Cannot render a book with no chapters")

        generated_at = utc_now()
        base_name = f"{sanitize_filename(book.title)}_{generated_at.strftime('%Y%m%d_%H%M%S')}"

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            html_path = self.output_dir / f"{base_name}.html"
            html_path.write_text(self.to_html(book), encoding="utf-8")

            extra_paths = {}
            if "pdf" in self.formats:
                pdf_path = self.output_dir / f"{base_name}.pdf"
                self.write_pdf(book, pdf_path)
                extra_paths["pdf"] = str(pdf_path)
        except OSError as e:
            raise RenderingError(f"Failed to write book files: {e}") from e

        file_size = html_path.stat().st_size
        logger.info(
            "Book rendered: %s (%d bytes, %d chapters%s)",
            html_path, file_size, len(book.chapters),
            ", +pdf" if extra_paths else "",
        )
        return RenderedBook(
            title=book.title,
            path=str(html_path),
            file_size=file_size,
            chapter_count=len(book.chapters),
            generated_at=generated_at.isoformat(),
            format="html",
            extra_paths=extra_paths,
        )

    # ---- HTML ----

    def to_html(self, book: BookContent) -> str:
        esc = html.escape
        parts = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8">',
            f"<title>{esc(book.title)}</title>",
            f"<style>{_HTML_STYLE}</style>",
            "</head>",
            "<body>",
            '<div class="title-page">',
            f"<h1>{esc(book.title)}</h1>",
            f'<p class="subtitle">{esc(book.subtitle)}</p>',
            f'<p class="author">{esc(book.author)}</p>',
            "</div>",
            '<div class="toc">',
            "<h2>Table of Contents</h2>",
            "<ul>",
        ]
        parts.extend(
            f'<li><a href="#chapter-{i}">Chapter {i}: {esc(chapter.title)}</a></li>'
            for i, chapter in enumerate(book.chapters, start=1)
        )
        parts.extend(["</ul>", "</div>"])

        for i, chapter in enumerate(book.chapters, start=1):
            parts.append(f'<div class="chapter" id="chapter-{i}">')
            parts.append(f"<h2>Chapter {i}: {esc(chapter.title)}</h2>")
            for kind, text in _blocks(chapter.content):
                if kind == "heading":
                    parts.append(f"<h3>{esc(text)}</h3>")
                else:
                    parts.append(f"<p>{esc(text)}</p>")
            parts.append("</div>")

        parts.extend(["</body>", "</html>"])
        return "\n".join(parts)

    # ---- PDF ----

    @staticmethod
    def _pdf_styles() -> dict[str, ParagraphStyle]:
        base = getSampleStyleSheet()
        return {
            "title": ParagraphStyle(
                "BookTitle", parent=base["Title"], fontSize=28, leading=34,
                alignment=TA_CENTER, spaceBefore=72, spaceAfter=18,
            ),
            "subtitle": ParagraphStyle(
                "BookSubtitle", parent=base["Normal"], fontName="Helvetica-Oblique",
                fontSize=16, leading=20, alignment=TA_CENTER, spaceAfter=36,
                textColor=HexColor("#555555"),
            ),
            "author": ParagraphStyle(
                "BookAuthor", parent=base["Normal"], fontSize=14, leading=18,
                alignment=TA_CENTER, spaceBefore=48,
            ),
            "toc_heading": ParagraphStyle("TocHeading", parent=base["Heading1"], spaceAfter=18),
            "toc_entry": ParagraphStyle("TocEntry", parent=base["Normal"], fontSize=12, leading=18),
            "chapter": ParagraphStyle(
                "ChapterHeading", parent=base["Heading1"], fontSize=22, leading=28,
                textColor=_CHAPTER_COLOR, spaceAfter=24,
            ),
            "section": ParagraphStyle(
                "SectionHeading", parent=base["Heading2"], fontSize=14, leading=18,
                spaceBefore=18, spaceAfter=9,
            ),
            "body": ParagraphStyle(
                "BookBody", parent=base["BodyText"], fontSize=11, leading=15,
                alignment=TA_JUSTIFY, spaceAfter=8,
            ),
        }

    def write_pdf(self, book: BookContent, path: Path):
        styles = self._pdf_styles()

        def para(text: str, style: str) -> Paragraph:
            # Paragraph parses its text as markup
            escaped = html.escape(text, quote=False).replace("\n", "<br/>")
            return Paragraph(escaped, styles[style])

        story = [
            para(book.title, "title"),
            para(book.subtitle, "subtitle"),
            para(book.author, "author"),
            PageBreak(),
            para("Table of Contents", "toc_heading"),
        ]
        story.extend(
            para(f"Chapter {i}: {chapter.title}", "toc_entry")
            for i, chapter in enumerate(book.chapters, start=1)
        )

        for i, chapter in enumerate(book.chapters, start=1):
            story.append(PageBreak())
            story.append(para(f"Chapter {i}: {chapter.title}", "chapter"))
            for kind, text in _blocks(chapter.content):
                story.append(para(text, "section" if kind == "heading" else "body"))
                if kind == "heading":
                    story.append(Spacer(1, 4))

        doc = SimpleDocTemplate(
            str(path),
            pagesize=A4,
            leftMargin=2.5 * cm,
            rightMargin=2.5 * cm,
            topMargin=2.5 * cm,
            bottomMargin=2.5 * cm,
            title=book.title,
            author=book.author,
        )
        try:
            doc.build(story)
        except Exception as e:
            raise RenderingError(f"PDF rendering failed: {e}") from e
        logger.debug("PDF written: %s", path)
