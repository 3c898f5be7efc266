"""
KNote Backend — Markup Renderer
================================

What:  Turns the markup a user types into the HTML fragment stored as a note.
How:   markdown-it-py with the CommonMark preset. Raw HTML is disabled, so
       `<script>` in a note is escaped instead of passed through.
Who:   Called by NotePublicationWorkflow on publish.

The attachment reference produced by AttachmentService (`![](/img/<key>)`)
is plain CommonMark image syntax and renders to an <img> tag here.
"""

import html
import logging
from typing import Optional

from markdown_it import MarkdownIt

logger = logging.getLogger(__name__)


class MarkupRenderer:
    """Pure markup → HTML conversion. Never raises."""

    def __init__(self) -> None:
        self._parser = MarkdownIt("commonmark", {"html": False})

    def render(self, markup_text: Optional[str]) -> str:
        """
        Render markup to an HTML fragment.

        Leading and trailing whitespace is stripped before parsing, so blank
        input renders to an empty string.
        """
        source = (markup_text or "").strip()
        if not source:
            return ""
        try:
            return self._parser.render(source)
        except Exception as e:
            # Rendering must not abort the request: fall back to escaped text.
            logger.warning("Markup rendering failed, escaping input: %s", str(e))
            return f"<p>{html.escape(source)}</p>\n"


markup_renderer = MarkupRenderer()
