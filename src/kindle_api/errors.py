"""Exceptions raised by the Kindle API client."""


class KindleError(Exception):
    """Base class for every error the client raises on purpose."""

    default_message = "Kindle API error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class UnauthenticatedError(KindleError):
    """The cookies were sent, but Amazon answered 401-403 or bounced to sign-in."""

    default_message = "Couldn't authenticate the request to the Kindle API"


class ServiceError(KindleError):
    """Kindle kept answering HTTP 5xx after every retry."""

    default_message = "Kindle Cloud Reader internal server error"


class BadResponseError(KindleError):
    """Status code outside every range the client knows how to handle."""

    default_message = "Received invalid HTTP response from Kindle API"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodingError(KindleError):
    """A JSON body could not be decoded into a model."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Couldn't decode the response from the Kindle API: {cause}")
        self.cause = cause


class HtmlDecodingError(KindleError):
    """Notebook markup did not have the expected shape.

    ``cause`` is None when the page itself was wrong (no candidate elements at
    all), and holds the inner exception when a parse step blew up.
    """

    def __init__(self, cause: BaseException | None = None):
        if cause is None:
            message = "Couldn't decode HTML from the Kindle API"
        else:
            message = f"Couldn't decode HTML from the Kindle API: {cause}"
        super().__init__(message)
        self.cause = cause


class MissingMetadataError(KindleError):
    """Book details came back without a metadata URL."""

    default_message = "Couldn't load the book metadata from Kindle"


class ClientDefectError(KindleError):
    """The retry loop finished without a result or an error. Always a bug."""

    default_message = (
        "Couldn't retrieve a response from Kindle pages, this is a client bug"
    )


class InvalidSessionError(KindleError, ValueError):
    """Session material is missing a required cookie."""

    default_message = "Kindle session is missing required cookies"
