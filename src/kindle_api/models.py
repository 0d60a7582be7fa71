"""Records returned by the Kindle API client.

The JSON service API and the HTML notebook pages describe books differently
and list different sets of books (owned library vs. everything ever
annotated), so each surface gets its own record types.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class HighlightColor(str, Enum):
    YELLOW = "yellow"
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"

    @classmethod
    def parse(cls, value: Any) -> "HighlightColor":
        """Unknown or missing colors resolve to yellow, Kindle's default."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.YELLOW


class AnnotationType(str, Enum):
    NOTE = "kindle.note"
    HIGHLIGHT = "kindle.highlight"
    BOOKMARK = "kindle.bookmark"


def parse_timestamp(value: Any) -> datetime | None:
    """Convert a Kindle sync time (epoch millis, epoch seconds or ISO string) to UTC."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            return None

    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def derive_display_author(authors: list[str]) -> str:
    """Turn Kindle's raw author list into a "Firstname Lastname" string.

    Entries look like "Schwab, V. E.:" and may pack several colon separated
    names, sometimes repeating the same person. Only the first entry is used;
    its segments are de-duplicated in textual order and the first one is
    flipped around its comma.
    """
    if not authors:
        return ""

    segments = [s.strip() for s in str(authors[0]).split(":")]
    unique = list(dict.fromkeys(s for s in segments if s))
    if not unique:
        return ""

    parts = [p.strip() for p in unique[0].split(",")]
    return " ".join(p for p in reversed(parts) if p)


# =============================================================================
# JSON service API
# =============================================================================

def _require_str(data: dict, key: str) -> str:
    """Look up a required string field; null or any other type is a TypeError."""
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


@dataclass
class LastPageRead:
    position: int | None = None
    sync_time: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "LastPageRead":
        position = data.get("position")
        return cls(
            position=int(position) if position is not None else None,
            sync_time=parse_timestamp(data.get("syncTime")),
        )


@dataclass
class BookDetails:
    """startReading response: format versions and where the metadata lives."""

    content_version: str | None = None
    metadata_url: str | None = None
    format_version: str | None = None
    yj_format_version: str | None = None
    last_page_read: LastPageRead | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "BookDetails":
        last_read = data.get("lastPageReadData")
        return cls(
            content_version=data.get("contentVersion"),
            metadata_url=data.get("metadataUrl"),
            format_version=data.get("formatVersion"),
            yj_format_version=data.get("YJFormatVersion"),
            last_page_read=LastPageRead.from_dict(last_read) if isinstance(last_read, dict) else None,
        )


@dataclass
class BookMetadata:
    """metadata.jsonp contents. ref_em_id is needed to fetch JSON annotations."""

    acr: str
    publisher: str
    release_date: str
    version: str
    start_position: int
    end_position: int
    ref_em_id: str
    book_size: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "BookMetadata":
        book_size = data.get("bookSize")
        return cls(
            acr=data["ACR"],
            publisher=data["publisher"],
            release_date=data["releaseDate"],
            version=data["version"],
            start_position=int(data["startPosition"]),
            end_position=int(data["endPosition"]),
            ref_em_id=data["refEmId"],
            book_size=str(book_size) if book_size is not None else None,
        )


@dataclass
class JSONBook:
    """A book from the library search endpoint (currently owned titles)."""

    asin: str
    web_reader_url: str
    cover_image_url: str
    title: str
    authors: list[str]
    author: str
    resource_type: str
    details: BookDetails | None = None
    metadata: BookMetadata | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "JSONBook":
        asin = _require_str(data, "asin")
        if not asin:
            raise ValueError("book without asin")
        authors = data["authors"]
        if not isinstance(authors, list) or not all(isinstance(a, str) for a in authors):
            raise TypeError(f"authors must be a list of strings, got {authors!r}")
        return cls(
            asin=asin,
            web_reader_url=_require_str(data, "webReaderUrl"),
            cover_image_url=_require_str(data, "productUrl"),
            title=_require_str(data, "title"),
            authors=authors,
            author=derive_display_author(authors),
            resource_type=_require_str(data, "resourceType"),
        )


@dataclass
class LibraryPage:
    """One page of the library search endpoint.

    next_token is None when the response carried no paginationToken.
    """

    items: list[JSONBook]
    next_token: str | None
    library_type: str
    sort_type: str

    @classmethod
    def from_dict(cls, data: dict) -> "LibraryPage":
        return cls(
            items=[JSONBook.from_dict(item) for item in data["itemsList"]],
            next_token=data.get("paginationToken"),
            library_type=data["libraryType"],
            sort_type=data["sortType"],
        )


@dataclass
class JSONAnnotation:
    highlight_text: str
    note_text: str | None
    color: HighlightColor
    annotation_type: AnnotationType
    position: int
    start: int
    end: int

    @classmethod
    def from_dict(cls, data: dict) -> "JSONAnnotation":
        # noteText is best effort, a missing or odd value never fails the record
        note = data.get("noteText")
        if not isinstance(note, str):
            note = None

        return cls(
            highlight_text=_require_str(data, "highlightText"),
            note_text=note,
            color=HighlightColor.parse(data.get("color")),
            annotation_type=AnnotationType(data["annotationType"]),
            position=int(data["position"]),
            start=int(data["start"]),
            end=int(data["end"]),
        )


# =============================================================================
# HTML notebook pages
# =============================================================================

@dataclass
class HTMLBook:
    """A book card from the notebook page (every title ever annotated)."""

    asin: str
    title: str
    author: str
    modified_at: date
    cover_image_url: str


@dataclass
class HTMLAnnotation:
    id: str
    highlight_text: str
    note_text: str | None
    color: HighlightColor
    annotation_type: AnnotationType
    position: int | None = None
    page: int | None = None
