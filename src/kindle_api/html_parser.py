"""Parsers for the Kindle notebook pages (read.amazon.com/notebook).

Two page shapes are understood: the library list of annotated books and the
annotation list of a single book. A malformed card or row is dropped and
logged; the rest of the page is still returned.
"""

import logging
import re
from datetime import date, datetime

from bs4 import BeautifulSoup, Tag
from dateutil import parser as dtparser

from . import constants
from .errors import HtmlDecodingError
from .models import AnnotationType, HighlightColor, HTMLAnnotation, HTMLBook

logger = logging.getLogger("kindle_api.api")

PAGE_PATTERN = re.compile(r"Page:\s*([\d,]+)")
DATE_PATTERN = re.compile(r"^\s*([A-Za-z]+)\.?,?\s+([A-Za-z]+)\.?\s+(\d{1,2}),\s*(\d{4})\s*$")

# dateutil's default name tables are English, independent of the process locale
_DATE_INFO = dtparser.parserinfo()
_DATE_DEFAULT = datetime(1900, 1, 1)


class MarkupError(ValueError):
    """A required element or attribute is missing from a card or row."""


def _text(element: Tag | None) -> str | None:
    """Element text with whitespace collapsed, or None if there is no element."""
    if element is None:
        return None
    return " ".join(element.get_text().split())


def _find_by_id(root: Tag, element_id: str) -> Tag | None:
    # ASINs may start with a digit, which "#id" CSS selectors reject
    return root.find(attrs={"id": element_id})


def parse_notebook_date(value: str) -> date:
    """Parse "Sunday December 15, 2024" (abbreviated names accepted too)."""
    match = DATE_PATTERN.match(value or "")
    if not match:
        raise MarkupError(f"Unrecognized date: {value!r}")

    weekday, month, day, year = match.groups()
    if _DATE_INFO.weekday(weekday) is None:
        raise MarkupError(f"Unrecognized weekday in date: {value!r}")
    if _DATE_INFO.month(month) is None:
        raise MarkupError(f"Unrecognized month in date: {value!r}")

    try:
        parsed = dtparser.parse(f"{month} {day} {year}", parserinfo=_DATE_INFO, default=_DATE_DEFAULT)
    except (dtparser.ParserError, ValueError, OverflowError) as e:
        raise MarkupError(f"Invalid date: {value!r}") from e
    return parsed.date()


# =============================================================================
# Library page
# =============================================================================

def parse_book(card: Tag) -> HTMLBook:
    """Build an HTMLBook from one library card. Raises MarkupError when incomplete."""
    asin = card.get("id")
    if not asin:
        raise MarkupError("Book card without id")

    title = _text(card.find("h2"))
    if title is None:
        raise MarkupError(f"Book {asin} has no title")

    author = _text(card.select_one(constants.BOOK_AUTHOR_SELECTOR))
    if author is None:
        raise MarkupError(f"Book {asin} has no author")
    if author.startswith(constants.AUTHOR_PREFIX):
        author = author[len(constants.AUTHOR_PREFIX):]

    date_input = _find_by_id(card, f"{constants.BOOK_DATE_ID_PREFIX}{asin}")
    if date_input is None:
        raise MarkupError(f"Book {asin} has no annotated date")
    modified_at = parse_notebook_date(date_input.get("value", ""))

    cover = card.select_one(constants.BOOK_COVER_SELECTOR)
    cover_url = cover.get("src") if cover is not None else None
    if not cover_url:
        raise MarkupError(f"Book {asin} has no cover image")

    return HTMLBook(
        asin=asin,
        title=title,
        author=author,
        modified_at=modified_at,
        cover_image_url=cover_url,
    )


def parse_books_page(markup: str, log=None) -> tuple[list[HTMLBook], str | None]:
    """Parse a notebook library page into (books, next page token).

    A page with no book cards at all means the markup changed under us and
    raises HtmlDecodingError; a broken individual card is skipped and reported
    to ``log`` (the module logger by default).
    """
    log = log if log is not None else logger
    soup = BeautifulSoup(markup, "html.parser")

    cards = soup.select(constants.BOOK_CARD_SELECTOR)
    if not cards:
        raise HtmlDecodingError()

    token_input = soup.select_one(constants.LIBRARY_NEXT_PAGE_SELECTOR)
    next_token = token_input.get("value") if token_input is not None else None

    books = []
    for card in cards:
        try:
            books.append(parse_book(card))
        except MarkupError as e:
            log.debug("Skipping book card: %s", e)

    log.debug("Parsed %d of %d book cards, next token %r", len(books), len(cards), next_token)
    return books, next_token


# =============================================================================
# Annotations page
# =============================================================================

def _parse_color(row: Tag) -> HighlightColor:
    container = row.select_one(f".{constants.HIGHLIGHT_CONTAINER_CLASS}")
    if container is None:
        return HighlightColor.YELLOW

    for css_class in container.get("class", []):
        if css_class.startswith(constants.HIGHLIGHT_COLOR_PREFIX):
            return HighlightColor.parse(css_class[len(constants.HIGHLIGHT_COLOR_PREFIX):])
    return HighlightColor.YELLOW


def _parse_page(row: Tag) -> int | None:
    header = _text(_find_by_id(row, constants.HIGHLIGHT_HEADER_ID)) or ""
    match = PAGE_PATTERN.search(header)
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def _parse_position(row: Tag) -> int:
    location = _find_by_id(row, constants.ANNOTATION_LOCATION_ID)
    value = location.get("value", "") if location is not None else ""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_annotation(row: Tag) -> HTMLAnnotation:
    """Build an HTMLAnnotation from one annotation row. Raises MarkupError when incomplete."""
    annotation_id = row.get("id")
    if not annotation_id:
        raise MarkupError("Annotation row without id")

    highlight_text = _text(_find_by_id(row, constants.HIGHLIGHT_TEXT_ID))
    if highlight_text is None:
        raise MarkupError(f"Annotation {annotation_id} has no highlight text")

    # The note span is always rendered; an empty one means a plain highlight
    note_text = _text(_find_by_id(row, constants.NOTE_TEXT_ID))
    if note_text:
        annotation_type = AnnotationType.NOTE
    else:
        annotation_type = AnnotationType.HIGHLIGHT
        note_text = None

    return HTMLAnnotation(
        id=annotation_id,
        highlight_text=highlight_text,
        note_text=note_text,
        color=_parse_color(row),
        annotation_type=annotation_type,
        position=_parse_position(row),
        page=_parse_page(row),
    )


def parse_annotations_page(markup: str, log=None) -> list[HTMLAnnotation]:
    """Parse a notebook annotations page. Broken rows are skipped."""
    log = log if log is not None else logger
    soup = BeautifulSoup(markup, "html.parser")

    # The last child of the container is a pagination sentinel, not an annotation
    rows = soup.select(constants.ANNOTATION_ROW_SELECTOR)

    annotations = []
    for row in rows:
        try:
            annotations.append(parse_annotation(row))
        except MarkupError as e:
            log.debug("Skipping annotation row: %s", e)

    log.debug("Parsed %d of %d annotation rows", len(annotations), len(rows))
    return annotations
