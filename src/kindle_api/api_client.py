"""Kindle Cloud Reader API client (read.amazon.com).

Undocumented API. Two surfaces are used: the JSON service endpoints behind the
web reader and the HTML notebook pages. Both need the same cookies and the
two session headers.
"""

import json
import logging
import urllib.parse
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

import httpx

from . import constants, endpoints
from .auth import KindleSession
from .errors import (
    BadResponseError,
    ClientDefectError,
    DecodingError,
    HtmlDecodingError,
    KindleError,
    MissingMetadataError,
    ServiceError,
    UnauthenticatedError,
)
from .html_parser import parse_annotations_page, parse_books_page
from .models import (
    BookDetails,
    BookMetadata,
    HTMLAnnotation,
    HTMLBook,
    JSONAnnotation,
    JSONBook,
    LibraryPage,
)

# Configure logger (API internals only logged at DEBUG level, usually disabled)
logger = logging.getLogger("kindle_api.api")
logger.setLevel(logging.WARNING)  # Suppress internal API logs by default

T = TypeVar("T")


def _format_debug_json(data: Any, max_length: int = 2000) -> str:
    """Format data as pretty-printed JSON for debug logging."""
    try:
        formatted = json.dumps(data, indent=2, ensure_ascii=False)
        if len(formatted) > max_length:
            return formatted[:max_length] + "\n  ... (truncated)"
        return formatted
    except (TypeError, ValueError):
        result = str(data)
        if len(result) > max_length:
            return result[:max_length] + "... (truncated)"
        return result


def strip_jsonp(text: str) -> str:
    """Return the JSON object inside a JSONP callback wrapper.

    Takes everything from the first "{" to the last "}". Text without braces
    is returned unchanged and left for the JSON decoder to reject.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return text
    return text[start:end + 1]


def is_signin_redirect(response: httpx.Response) -> bool:
    """Amazon answers an expired session with 200 on the sign-in page."""
    return response.url.path.startswith(constants.SIGNIN_PATH_PREFIX)


class KindleClient:
    """Async client for the Kindle Cloud Reader JSON API and notebook pages.

    One client owns one isolated httpx session whose cookie jar holds exactly
    the session's cookies. Calls are independent; pagination inside a call is
    sequential because every page names the next one.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        session: KindleSession,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        timeout: float = constants.DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            session: Hydrated session (cookies, device token, session id)
            logger: Logger for request/retry/parse messages. Defaults to the
                "kindle_api.api" logger, which stays quiet below WARNING.
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.session = session
        self.timeout = timeout
        self._log = logger if logger is not None else logging.getLogger("kindle_api.api")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "KindleClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client, seeded with the session cookies only."""
        if self._client is None:
            cookies = httpx.Cookies()
            for name, value in self.session.cookies.items():
                cookies.set(name, value, domain=constants.COOKIE_DOMAIN)

            self._client = httpx.AsyncClient(
                headers=constants.DEFAULT_HEADERS,
                cookies=cookies,
                follow_redirects=True,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    # =========================================================================
    # Transport
    # =========================================================================

    async def _fetch(self, url: str, max_attempts: int = constants.HTML_MAX_ATTEMPTS) -> httpx.Response:
        """GET ``url`` and validate the response.

        401-403 raise UnauthenticatedError right away. 5xx are retried
        immediately while attempts remain, then raise ServiceError. A 2xx that
        landed on the sign-in page is an expired session, not a success. Any
        other status raises BadResponseError.
        """
        client = self._get_client()
        attempt = 1

        while attempt <= max_attempts:
            self._log.debug("GET %s (attempt %d/%d)", url, attempt, max_attempts)
            response = await client.get(url, headers=self.session.headers)
            status = response.status_code
            self._log.debug("Response Status: %d from %s", status, response.url)

            if 401 <= status <= 403:
                self._log.error("Request returned HTTP %d, session rejected. URL: %s", status, url)
                raise UnauthenticatedError()

            if 500 <= status <= 599:
                # Kindle pages sometimes render a 500 that goes away on the next try
                if attempt < max_attempts:
                    self._log.info("Retrying %s after HTTP %d (attempt %d)", url, status, attempt)
                    attempt += 1
                    continue
                self._log.error("HTTP %d from %s after %d attempts", status, url, attempt)
                raise ServiceError()

            if 200 <= status <= 299:
                if is_signin_redirect(response):
                    self._log.error("Request was redirected to sign-in, session expired. URL: %s", url)
                    raise UnauthenticatedError()
                return response

            raise BadResponseError(f"Unexpected HTTP {status} from Kindle API", status_code=status)

        self._log.error("Retry loop for %s ended without a response or an error", url)
        raise ClientDefectError()

    # =========================================================================
    # JSON decoding
    # =========================================================================

    def _decode(self, text: str, build: Callable[[Any], T]) -> T:
        """Decode a JSON body and build a model from it, wrapping any failure."""
        try:
            data = json.loads(text)
            if self._log.isEnabledFor(logging.DEBUG):
                self._log.debug("Response Data:\n%s", _format_debug_json(data))
            return build(data)
        except (ValueError, KeyError, TypeError, AttributeError, OverflowError, RecursionError) as e:
            self._log.error("Failed to decode Kindle response: %r", e)
            raise DecodingError(e) from e

    async def _fetch_json(
        self,
        url: str,
        build: Callable[[Any], T],
        max_attempts: int = constants.JSON_MAX_ATTEMPTS,
        jsonp: bool = False,
    ) -> T:
        response = await self._fetch(url, max_attempts=max_attempts)
        text = strip_jsonp(response.text) if jsonp else response.text
        return self._decode(text, build)

    # =========================================================================
    # JSON API
    # =========================================================================

    async def fetch_library_page(self, pagination_token: str = "") -> LibraryPage:
        """Fetch one page of the library. An empty token means the first page."""
        return await self._fetch_json(
            endpoints.library_json_url(pagination_token), LibraryPage.from_dict
        )

    async def fetch_library(self) -> list[JSONBook]:
        """Fetch every owned book, following pagination tokens until none is returned.

        Details and metadata are not loaded; see ``attach_metadata``.
        """
        books: list[JSONBook] = []
        token: str | None = ""

        while token is not None:
            page = await self.fetch_library_page(token)
            books.extend(page.items)
            self._log.debug("Library page: %d books, next token %r", len(page.items), page.next_token)

            if page.next_token == token:
                self._log.info("Library search repeated pagination token %r, stopping", token)
                break
            token = page.next_token

        self._log.info("Fetched %d books from the Kindle library", len(books))
        return books

    async def fetch_book_details_and_metadata(self, asin: str) -> tuple[BookDetails, BookMetadata]:
        """Fetch book details, then the metadata file they point to."""
        details = await self._fetch_json(endpoints.book_details_url(asin), BookDetails.from_dict)

        if not details.metadata_url:
            self._log.error("Book %s details have no metadata URL", asin)
            raise MissingMetadataError()

        metadata_url = urllib.parse.urljoin(f"{constants.BASE_URL}/", details.metadata_url)
        metadata = await self._fetch_json(metadata_url, BookMetadata.from_dict, jsonp=True)
        return details, metadata

    async def attach_metadata(self, book: JSONBook) -> JSONBook:
        """Load details and metadata for ``book`` and store them on it."""
        book.details, book.metadata = await self.fetch_book_details_and_metadata(book.asin)
        return book

    async def fetch_annotations(
        self, asin: str, ref_em_id: str, yj_format_version: str
    ) -> list[JSONAnnotation]:
        """Fetch annotations from the JSON API. Single request, no pagination.

        Args:
            asin: The ASIN of the book
            ref_em_id: ``BookMetadata.ref_em_id``
            yj_format_version: ``BookDetails.yj_format_version``
        """
        url = endpoints.annotations_json_url(asin, ref_em_id, yj_format_version)
        return await self._fetch_json(
            url, lambda data: [JSONAnnotation.from_dict(item) for item in data["annotations"]]
        )

    # =========================================================================
    # HTML notebook
    # =========================================================================

    @contextmanager
    def _html_errors(self, what: str) -> Iterator[None]:
        """Let client and transport errors through, wrap anything else as HtmlDecodingError."""
        try:
            yield
        except UnauthenticatedError:
            raise
        except (KindleError, httpx.HTTPError):
            self._log.error("Failed to fetch or parse %s", what)
            raise
        except Exception as e:
            self._log.error("Failed to fetch or parse %s: %r", what, e)
            raise HtmlDecodingError(e) from e

    def _check_notebook_cookies(self) -> None:
        if not self.session.has_session_token:
            self._log.info(
                "Session has no %s cookie; notebook pages may redirect to sign-in",
                constants.COOKIE_SESSION_TOKEN,
            )

    async def fetch_notebook_library(self) -> list[HTMLBook]:
        """Fetch every book listed on the notebook page, following its page tokens."""
        books: list[HTMLBook] = []
        token: str | None = None
        self._check_notebook_cookies()

        with self._html_errors("notebook library"):
            while True:
                response = await self._fetch(endpoints.notebook_library_url(token))
                page_books, next_token = parse_books_page(response.text, log=self._log)
                books.extend(page_books)

                if not next_token or next_token == token:
                    break
                token = next_token

        self._log.info("Fetched %d books from the Kindle notebook", len(books))
        return books

    async def fetch_notebook_annotations(self, asin: str) -> list[HTMLAnnotation]:
        """Fetch the annotations of one book from the notebook page.

        Only the first page is read.
        """
        self._check_notebook_cookies()
        with self._html_errors(f"notebook annotations for {asin}"):
            response = await self._fetch(endpoints.notebook_annotations_url(asin))
            return parse_annotations_page(response.text, log=self._log)
