"""Parse free-text model replies into structured articles.

The model is asked to answer in four labelled sections:

    TITLE: ...
    BODY: ...
    EXCERPT: ...
    TAGS: tag one, tag two

Replies do not always follow that format, so parsing never fails. Missing
fields are filled from the rest of the reply instead.
"""

import logging
import re

from bs4 import BeautifulSoup

from post_generator.engines.models import ParsedArticle


logger = logging.getLogger(__name__)


# =============================================================================
# Regex Patterns for Marker-Based Response Parsing
# =============================================================================

MARKER_NAMES = ("TITLE", "BODY", "EXCERPT", "TAGS")

# A marker must open a line. Markdown decoration around it is tolerated:
# "TITLE:", "Title:", "**TITLE:**", "**Title**:", "## Body:", "*Tags:*"
# Closing emphasis is consumed only when the same emphasis opened the
# marker, and only once, so "TITLE: **Bold title**" keeps its text.
MARKER_PATTERN = re.compile(
    r'^[ \t>#]*(?P<open>\*\*|__|\*|_)?[ \t]*'
    r'(?P<name>TITLE|BODY|EXCERPT|TAGS)'
    r'(?P<closed>[ \t]*(?P=open))?[ \t]*:'
    r'(?(closed)|(?(open)(?P=open)?))',
    re.IGNORECASE | re.MULTILINE,
)

EMPHASIS_WRAPPERS = ("**", "__", "*", "_")

UNTITLED_POST = "Untitled Post"
TITLE_WORD_LIMIT = 10
EXCERPT_WORD_LIMIT = 30


def extract_sections(raw_text: str) -> dict[str, str]:
    """Split a reply into its marked sections.

    Each section runs from the end of its marker to the start of the next
    marker, or to the end of the text. Only the first occurrence of each
    marker name opens a section; a repeated name is kept as plain text of
    whichever section it falls in. Text before the first marker is ignored.

    Args:
        raw_text: The model's reply.

    Returns:
        Mapping of upper-case marker name to untrimmed section text. Markers
        that do not appear are absent from the mapping.

    Example:
        >>> extract_sections("TITLE: Hi\\nBODY: Text")
        {'TITLE': ' Hi\\n', 'BODY': ' Text'}
    """
    if not raw_text:
        return {}

    openings: list[re.Match] = []
    seen: set[str] = set()
    for match in MARKER_PATTERN.finditer(raw_text):
        name = match.group("name").upper()
        if name in seen:
            continue
        seen.add(name)
        openings.append(match)

    sections: dict[str, str] = {}
    for position, match in enumerate(openings):
        if position + 1 < len(openings):
            end = openings[position + 1].start()
        else:
            end = len(raw_text)
        sections[match.group("name").upper()] = raw_text[match.end():end]

    return sections


def strip_markup(text: str) -> str:
    """Remove HTML tags (and script/style contents) from text."""
    if not text:
        return ""
    if "<" not in text and "&" not in text:
        return text

    soup = BeautifulSoup(text, "lxml")
    for element in soup(["script", "style"]):
        element.decompose()
    return soup.get_text(separator=" ")


def truncate_words(text: str, limit: int) -> str:
    """Return the first `limit` whitespace-separated words of text."""
    words = text.split()
    return " ".join(words[:limit])


def split_tags(tags_text: str) -> list[str]:
    """Split a comma-separated tag section.

    Each element is trimmed; empty elements in the middle are kept. A
    section that is blank as a whole means no tags.

    Example:
        >>> split_tags(" coffee, brewing ,tips ")
        ['coffee', 'brewing', 'tips']
        >>> split_tags("   ")
        []
    """
    stripped = tags_text.strip()
    if not stripped:
        return []
    return [tag.strip() for tag in stripped.split(",")]


def _unwrap_emphasis(text: str) -> str:
    """Remove Markdown emphasis only when it wraps the whole text.

    Example:
        >>> _unwrap_emphasis("**Cold Brew Basics**")
        'Cold Brew Basics'
        >>> _unwrap_emphasis("__init__ explained")
        '__init__ explained'
    """
    text = text.strip()
    for wrapper in EMPHASIS_WRAPPERS:
        size = len(wrapper)
        if len(text) > 2 * size and text.startswith(wrapper) and text.endswith(wrapper):
            return text[size:-size].strip()
    return text


def _title_from_first_line(raw_text: str) -> str:
    """Derive a title from the first line that has text.

    A marker label opening the line is dropped first, so a reply that
    starts with an empty "TITLE:" line falls through to the next line.
    """
    for line in raw_text.splitlines():
        cleaned = MARKER_PATTERN.sub("", line, count=1)
        cleaned = _unwrap_emphasis(strip_markup(cleaned).lstrip(" \t#>"))
        if cleaned.split():
            return truncate_words(cleaned, TITLE_WORD_LIMIT)
    return UNTITLED_POST


def parse_response(raw_text: str) -> ParsedArticle:
    """Parse a model reply into title, body, excerpt and tags.

    Fallbacks apply only to fields that came out empty, in this order:

    1. body    <- the whole reply
    2. title   <- first line with text, cut to 10 words, else "Untitled Post"
    3. body    <- the title, when the reply itself was blank
    4. excerpt <- first 30 words of the body with markup removed

    Args:
        raw_text: The model's reply.

    Returns:
        A ParsedArticle whose title and body are never empty.
    """
    raw_text = raw_text or ""
    sections = extract_sections(raw_text)

    title = sections.get("TITLE", "").strip()
    body = sections.get("BODY", "").strip()
    excerpt = sections.get("EXCERPT", "").strip()
    tags = split_tags(sections.get("TAGS", ""))

    if not body:
        logger.warning(
            "No BODY section found in model reply. Using the entire reply as the body."
        )
        body = raw_text.strip()

    if not title:
        title = _title_from_first_line(raw_text)
        logger.debug(f"No TITLE section found. Derived title: '{title}'")

    if not body:
        body = title

    if not excerpt:
        excerpt = truncate_words(strip_markup(body), EXCERPT_WORD_LIMIT)
        logger.debug("No EXCERPT section found. Derived excerpt from body.")

    return ParsedArticle(title=title, body=body, excerpt=excerpt, tags=tags)
