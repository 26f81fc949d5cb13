"""SVG score badge rendering."""

from __future__ import annotations

from dataclasses import dataclass
from xml.sax.saxutils import escape

from ..grading import grade_for

_GRADE_COLORS = {
    "A+": "#2ea44f",
    "A": "#4c1",
    "B": "#97ca00",
    "C": "#dfb317",
    "D": "#fe7d37",
    "F": "#e05d44",
}

_CHAR_WIDTH = 7
_PADDING = 10


@dataclass
class BadgeRenderer:
    """Renders a flat two-part badge showing the karen score and grade."""

    label: str = "karen score"

    def render(self, total: int, grade: str | None = None) -> str:
        grade = grade or grade_for(total)
        value = f"{total}/100 {grade}"
        color = _GRADE_COLORS.get(grade, "#9f9f9f")

        label_width = self._text_width(self.label)
        value_width = self._text_width(value)
        width = label_width + value_width
        label_x = label_width / 2
        value_x = label_width + value_width / 2
        title = escape(f"{self.label}: {value}")
        label = escape(self.label)
        value = escape(value)

        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="20" '
            f'role="img" aria-label="{title}">\n'
            f"  <title>{title}</title>\n"
            '  <linearGradient id="s" x2="0" y2="100%">\n'
            '    <stop offset="0" stop-color="#bbb" stop-opacity=".1"/>\n'
            '    <stop offset="1" stop-opacity=".1"/>\n'
            "  </linearGradient>\n"
            f'  <clipPath id="r"><rect width="{width}" height="20" rx="3" fill="#fff"/></clipPath>\n'
            '  <g clip-path="url(#r)">\n'
            f'    <rect width="{label_width}" height="20" fill="#555"/>\n'
            f'    <rect x="{label_width}" width="{value_width}" height="20" fill="{color}"/>\n'
            f'    <rect width="{width}" height="20" fill="url(#s)"/>\n'
            "  </g>\n"
            '  <g fill="#fff" text-anchor="middle" '
            'font-family="Verdana,Geneva,DejaVu Sans,sans-serif" font-size="11">\n'
            f'    <text x="{label_x:g}" y="15" fill="#010101" fill-opacity=".3">{label}</text>\n'
            f'    <text x="{label_x:g}" y="14">{label}</text>\n'
            f'    <text x="{value_x:g}" y="15" fill="#010101" fill-opacity=".3">{value}</text>\n'
            f'    <text x="{value_x:g}" y="14">{value}</text>\n'
            "  </g>\n"
            "</svg>\n"
        )

    @staticmethod
    def _text_width(text: str) -> int:
        return len(text) * _CHAR_WIDTH + _PADDING * 2


__all__ = ["BadgeRenderer"]
