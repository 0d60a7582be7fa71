"""
Constants for the Kindle Cloud Reader API.

Hosts, cookie and header names, markup hooks and client defaults live here so
the endpoint builder, the transport and the parsers agree on them.
"""

# =============================================================================
# Hosts
# =============================================================================
BASE_URL = "https://read.amazon.com"
BACKEND_HOST = "read.amazon.com"
SIGNIN_HOST = "www.amazon.com"

# Amazon redirects expired sessions here instead of answering 401
SIGNIN_PATH_PREFIX = "/ap/signin"

# Sent as clientVersion on the mobile reader service endpoints
CLIENT_VERSION = "20000100"

# Library search page size
LIBRARY_QUERY_SIZE = 50


# =============================================================================
# Cookies & Headers
# =============================================================================
COOKIE_UBID_MAIN = "ubid-main"
COOKIE_AT_MAIN = "at-main"
COOKIE_X_MAIN = "x-main"
COOKIE_SESSION_ID = "session-id"
# Short-lived, only the notebook HTML pages need it
COOKIE_SESSION_TOKEN = "session-token"

REQUIRED_COOKIES = [COOKIE_UBID_MAIN, COOKIE_AT_MAIN, COOKIE_X_MAIN, COOKIE_SESSION_ID]

# Cookie jar domain, covers both read.amazon.com and www.amazon.com
COOKIE_DOMAIN = ".amazon.com"

HEADER_SESSION_ID = "x-amzn-sessionid"
HEADER_ADP_SESSION_TOKEN = "x-adp-session-token"


# =============================================================================
# Retry budgets
# =============================================================================
# Notebook pages throw the odd HTTP 500 that succeeds when asked again
HTML_MAX_ATTEMPTS = 2
JSON_MAX_ATTEMPTS = 1


# =============================================================================
# Notebook markup
# =============================================================================
BOOK_CARD_SELECTOR = ".kp-notebook-library-each-book"
BOOK_AUTHOR_SELECTOR = "p.kp-notebook-searchable"
BOOK_COVER_SELECTOR = "img.kp-notebook-cover-image"
BOOK_DATE_ID_PREFIX = "kp-notebook-annotated-date-"
LIBRARY_NEXT_PAGE_SELECTOR = ".kp-notebook-library-next-page-start"
AUTHOR_PREFIX = "By: "

ANNOTATION_ROW_SELECTOR = "#kp-notebook-annotations > div:not(:last-child)"
HIGHLIGHT_TEXT_ID = "highlight"
NOTE_TEXT_ID = "note"
HIGHLIGHT_HEADER_ID = "annotationHighlightHeader"
ANNOTATION_LOCATION_ID = "kp-annotation-location"
HIGHLIGHT_CONTAINER_CLASS = "kp-notebook-highlight"
HIGHLIGHT_COLOR_PREFIX = "kp-notebook-highlight-"


# =============================================================================
# Client defaults
# =============================================================================
DEFAULT_TIMEOUT = 30.0

DEFAULT_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
}
