"""Error types raised by the CouchDB client and its response parsers."""

from pydantic import BaseModel, ValidationError


class CouchErrorBody(BaseModel):
    """
    The JSON body CouchDB sends along with a non-2xx status.

    Attributes:
        error:  Short error identifier (e.g. "not_found").
        reason: Human-readable explanation (e.g. "missing").
    """

    error: str = "unknown_error"
    reason: str = ""


class CouchDBError(Exception):
    """
    Raised when CouchDB answers a request with a non-2xx status.
    """

    def __init__(self, status_code: int, error: str, reason: str = "", url: str | None = None):
        self.status_code = status_code
        self.error = error
        self.reason = reason
        self.url = url
        message = f"CouchDB request failed with status {status_code}: {error}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)

    @classmethod
    def from_response(cls, status_code: int, body: bytes | str, url: str | None = None) -> "CouchDBError":
        """
        Builds the error from a raw response body.

        Args:
            status_code (int): The HTTP status of the response.
            body (bytes | str): The raw response body. Non-JSON bodies are kept as the reason.
            url (str | None): The requested URL, for logging.

        Returns:
            CouchDBError: The parsed error.
        """
        try:
            parsed = CouchErrorBody.model_validate_json(body)
        except ValidationError:
            text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
            parsed = CouchErrorBody(reason=text.strip())
        return cls(status_code=status_code, error=parsed.error, reason=parsed.reason, url=url)


class CouchResponseError(ValueError):
    """
    Raised when a response body matches neither the offset nor the bookmark envelope shape.
    """
