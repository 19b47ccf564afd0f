"""
Content block builder for the heading lanes, plus the titles-lane
description.

The heading block is delimited by sentinel comments. A later apply
replaces the delimited block in place; a body without one gets the
block appended once. Applying the same headings twice yields the same
body.
"""

from __future__ import annotations

import html
import re
from collections.abc import Mapping, Sequence

from content_spine.matching.normalize import clean_text

BLOCK_START = "<!-- CONTENT-SPINE:START -->"
BLOCK_END = "<!-- CONTENT-SPINE:END -->"
BLOCK_PATTERN = re.compile(r"<!--\s*CONTENT-SPINE:START\s*-->.*?<!--\s*CONTENT-SPINE:END\s*-->", re.DOTALL)

DESCRIPTION_MAX = 160


def intro_sentence(title: str) -> str:
    title = (title or "").strip() or "This page"
    return f"{title} brings together highlights, themes, and related links to help you explore more content."


def heading_paragraph(heading: str) -> str:
    heading = (heading or "").strip()
    if not heading:
        return "Explore more in this section."
    return f"Explore “{heading}” with a quick overview, key moments, and nearby pages you may also like."


def build_block(title: str, headings: Sequence[str], terms: Sequence[str] = ()) -> str:
    """Marked HTML block: intro, one ``<h2>`` + paragraph per heading, related terms."""
    esc = html.escape
    lines = [
        BLOCK_START,
        '<section class="content-spine-block">',
        f"<p>{esc(intro_sentence(title))}</p>",
    ]
    for heading in headings:
        lines.append(f"<h2>{esc(heading)}</h2>")
        lines.append(f"<p>{esc(heading_paragraph(heading))}</p>")
    if terms:
        items = "\n".join(f"<li>{esc(name)}</li>" for name in terms)
        lines.append(f'<div class="content-spine-related">\n<strong>Explore more:</strong>\n<ul>{items}</ul>\n</div>')
    lines.append("</section>")
    lines.append(BLOCK_END)
    return "\n".join(lines)


def replace_or_append(body: str, block: str) -> str:
    body = body or ""
    if BLOCK_PATTERN.search(body):
        return BLOCK_PATTERN.sub(lambda _m: block, body, count=1)
    if not body:
        return block
    return f"{body}\n{block}"


def build_description(
    seo_title: str,
    focus_keyword: str,
    primary: Mapping[str, str],
    keywords: Sequence[str],
) -> str:
    """SEO description from the primary slot; cleaned and cut to 160 characters."""
    parts = [f"{seo_title}."]
    category = primary.get("category", "")
    tone = primary.get("tone", "")
    if category:
        parts.append(f"Category: {category}.")
    if tone:
        parts.append(f"Tone: {tone}.")
    if focus_keyword:
        parts.append(f"Explore {focus_keyword} and related highlights.")
    related = list(keywords[1:4])
    if related:
        parts.append(f"Related: {', '.join(related)}.")
    return clean_text(" ".join(parts), DESCRIPTION_MAX)


__all__ = [
    "BLOCK_START",
    "BLOCK_END",
    "BLOCK_PATTERN",
    "DESCRIPTION_MAX",
    "intro_sentence",
    "heading_paragraph",
    "build_block",
    "replace_or_append",
    "build_description",
]
