"""URL builders for the Kindle Cloud Reader endpoints.

Pure string work, no I/O. Callers pass well-formed ASINs and tokens; values
are percent-encoded on the way in.
"""

import urllib.parse

from . import constants

BASE_URL = constants.BASE_URL

# Amazon sign-in with the Kindle web reader as return target
SIGNIN_URL = "https://{host}{path}?{query}".format(
    host=constants.SIGNIN_HOST,
    path=constants.SIGNIN_PATH_PREFIX,
    query=urllib.parse.urlencode({
        "openid.pape.max_auth_age": "1209600",
        "openid.return_to": f"{BASE_URL}/kindle-library",
        "openid.identity": "http://specs.openid.net/auth/2.0/identifier_select",
        "openid.assoc_handle": "amzn_kindle_mykindle_us",
        "openid.mode": "checkid_setup",
        "language": "en_US",
        "openid.claimed_id": "http://specs.openid.net/auth/2.0/identifier_select",
        "pageId": "amzn_kindle_mykindle_us",
        "openid.ns": "http://specs.openid.net/auth/2.0",
    }),
)

LIBRARY_URL = f"{BASE_URL}/kindle-library"


def _q(value: str) -> str:
    return urllib.parse.quote(value, safe="")


def device_token_url(token: str) -> str:
    """getDeviceToken takes the same value for serial number and device type."""
    token = _q(token)
    return (
        f"{BASE_URL}/service/web/register/getDeviceToken"
        f"?serialNumber={token}&deviceType={token}"
    )


def library_json_url(pagination_token: str) -> str:
    """Library search page. An empty token asks for the first page."""
    url = (
        f"{BASE_URL}/kindle-library/search?query=&libraryType=BOOKS"
        f"&sortType=recency&querySize={constants.LIBRARY_QUERY_SIZE}"
    )
    if pagination_token:
        url += f"&paginationToken={_q(pagination_token)}"
    return url


def book_details_url(asin: str, client_version: str = constants.CLIENT_VERSION) -> str:
    """startReading returns the metadata URL and the YJ format version."""
    return (
        f"{BASE_URL}/service/mobile/reader/startReading"
        f"?asin={_q(asin)}&clientVersion={_q(client_version)}"
    )


def annotations_json_url(
    asin: str,
    ref_em_id: str,
    yj_format_version: str,
    client_version: str = constants.CLIENT_VERSION,
) -> str:
    # guid is "<refEmId>,<yjFormatVersion>", the comma stays literal
    guid = f"{_q(ref_em_id)},{_q(yj_format_version)}"
    return (
        f"{BASE_URL}/service/mobile/reader/getAnnotations"
        f"?asin={_q(asin)}&guid={guid}&clientVersion={_q(client_version)}"
    )


def notebook_library_url(pagination_token: str | None = None) -> str:
    """Notebook library page. The first page and the follow-ups differ in shape."""
    if pagination_token:
        return f"{BASE_URL}/notebook?library=list&token={_q(pagination_token)}&"
    return f"{BASE_URL}/notebook?ref_=kcr_notebook_lib&language=en-US"


def notebook_annotations_url(asin: str) -> str:
    return f"{BASE_URL}/notebook?asin={_q(asin)}&contentLimitState=&"
