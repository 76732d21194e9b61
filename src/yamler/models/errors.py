"""Error types raised by the load pipeline, with their user-facing messages."""

from __future__ import annotations

from pydantic import BaseModel


class YamlerError(Exception):
    """Base class for errors that terminate a load attempt."""

    code = "YAMLER_ERROR"


class InputError(YamlerError):
    """The URL is empty or lacks an ``http://`` / ``https://`` prefix."""

    code = "INPUT_ERROR"


class FetchError(YamlerError):
    """The remote document could not be retrieved."""

    code = "FETCH_ERROR"

    def __init__(
        self,
        message: str = "Failed to fetch the file",
        *,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ParseError(YamlerError):
    """The fetched text is not valid YAML."""

    code = "PARSE_ERROR"

    def __init__(self, message: str = "Invalid YAML format") -> None:
        super().__init__(message)


class YAMLSafetyError(ParseError):
    """Raised when YAML input violates safety constraints.

    Distinct from plain parse errors: these indicate oversized or pathological
    input (huge documents, excessive nesting, self-referencing aliases).
    """

    code = "YAML_SAFETY_ERROR"


class ErrorDetail(BaseModel):
    """Serializable form of a :class:`YamlerError`."""

    error: str
    message: str

    @classmethod
    def from_exception(cls, exc: YamlerError) -> ErrorDetail:
        return cls(error=exc.code, message=str(exc))
