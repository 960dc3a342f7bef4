"""Publisher package: book rendering to HTML and PDF."""

from publisher.book_renderer import BookRenderer, SUPPORTED_FORMATS

__all__ = ["BookRenderer", "SUPPORTED_FORMATS"]
