"""Japanese font support for ReportLab PDF generation.

Uses ReportLab's built-in Adobe CID fonts, so no font files have to be
bundled or installed.
"""

import logging

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont

logger = logging.getLogger(__name__)

_fonts_registered = False

# Mincho for body text, Gothic for headings
JAPANESE_FONT = "HeiseiMin-W3"
JAPANESE_FONT_BOLD = "HeiseiKakuGo-W5"


def register_japanese_fonts() -> bool:
    """Register Japanese CID fonts with ReportLab."""
    global _fonts_registered

    if _fonts_registered:
        return True

    try:
        pdfmetrics.registerFont(UnicodeCIDFont(JAPANESE_FONT))
        pdfmetrics.registerFont(UnicodeCIDFont(JAPANESE_FONT_BOLD))
    except Exception as e:
        logger.warning(f"Could not register Japanese CID fonts: {e}")
        return False

    _fonts_registered = True
    return True


def get_font_name(bold: bool = False) -> str:
    """Get the appropriate registered font name."""
    if not register_japanese_fonts():
        return "Helvetica-Bold" if bold else "Helvetica"
    return JAPANESE_FONT_BOLD if bold else JAPANESE_FONT
