"""Error taxonomy for delivery.

Every failure a client operation can produce is raised as a single
exception type, :class:`DeliveryError`, whose :attr:`~DeliveryError.kind`
selects one member of a closed set:

* bare tags -- members of the :class:`Kind` enum, and
* two data-carrying variants -- :class:`HttpTransportError` (wraps the
  transport exception) and :class:`ApiError` (the server's status code and
  the outcome of reading the response body).

``str(error)`` is always the fixed description of the kind returned by
:func:`describe`.  The free-form :attr:`~DeliveryError.detail` is kept
separate so callers that want both ask for both.

External failures are converted by one function per domain
(:func:`from_io_error`, :func:`from_json_encode_error`,
:func:`from_json_decode_error`, :func:`from_json_parse_error`,
:func:`from_http_error`).  :func:`classify` dispatches to the right one by
exception type and :func:`converting` applies it around a fallible call::

    with converting():
        text = path.read_text()   # OSError -> DeliveryError(Kind.IO_ERROR)
"""

from __future__ import annotations

import enum
import json
from contextlib import contextmanager
from dataclasses import dataclass
from functools import singledispatch
from typing import Iterator, Optional, Union, assert_never

import httpx
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from delivery.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_DATA_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class Kind(str, enum.Enum):
    """Failure kinds that carry no data of their own."""

    AUTHENTICATION_FAILED = "authentication_failed"
    NO_MATCHING_COMMAND = "no_matching_command"
    NOT_ON_A_BRANCH = "not_on_a_branch"
    CANNOT_REVIEW_SAME_BRANCH = "cannot_review_same_branch"
    FAILED_TO_EXECUTE = "failed_to_execute"
    PUSH_FAILED = "push_failed"
    BAD_GIT_OUTPUT_MATCH = "bad_git_output_match"
    NO_CONFIG = "no_config"
    GIT_FAILED = "git_failed"
    GIT_SETUP_FAILED = "git_setup_failed"
    CONFIG_PARSE = "config_parse"
    MISSING_CONFIG = "missing_config"
    CONFIG_VALIDATION = "config_validation"
    IO_ERROR = "io_error"
    JSON_ERROR = "json_error"
    JSON_ENCODE = "json_encode"
    NO_BUILD_COOKBOOK = "no_build_cookbook"
    NO_HOMEDIR = "no_homedir"
    EXPECTED_JSON_STRING = "expected_json_string"
    BERKS_FAILED = "berks_failed"
    NO_VALID_BUILD_COOKBOOK = "no_valid_build_cookbook"
    COPY_FAILED = "copy_failed"
    MISSING_BUILD_COOKBOOK_NAME = "missing_build_cookbook_name"
    SUPERMARKET_FAILED = "supermarket_failed"
    MOVE_FAILED = "move_failed"
    TAR_FAILED = "tar_failed"
    MISSING_BUILD_COOKBOOK_FIELD = "missing_build_cookbook_field"
    CHEF_SERVER_FAILED = "chef_server_failed"
    CHOWN_FAILED = "chown_failed"
    CHEF_FAILED = "chef_failed"
    CHMOD_FAILED = "chmod_failed"
    UNSUPPORTED_HTTP_METHOD = "unsupported_http_method"
    JSON_PARSE_ERROR = "json_parse_error"
    OPEN_FAILED = "open_failed"
    NO_TOKEN = "no_token"


@dataclass(frozen=True)
class HttpTransportError:
    """The request never produced a response (connection, TLS, timeout, bad URL)."""

    cause: Exception


@dataclass(frozen=True)
class ApiError:
    """The server answered with a status the caller did not expect.

    Args:
        status_code: The HTTP status observed.
        body: The response body text, or the exception raised while
            trying to read it.
    """

    status_code: int
    body: Union[str, Exception]

    @property
    def body_read_failed(self) -> bool:
        return isinstance(self.body, Exception)


ErrorKind = Union[Kind, HttpTransportError, ApiError]


def describe(kind: ErrorKind) -> str:
    """Return the fixed, human-readable sentence for *kind*.

    The match is exhaustive: a new :class:`Kind` member without a case here
    is reported by the type checker through :func:`typing.assert_never`.
    """
    match kind:
        case Kind.NO_MATCHING_COMMAND:
            return "No command matches your arguments - likely unimplemented feature"
        case Kind.NOT_ON_A_BRANCH:
            return "You must be on a branch"
        case Kind.CANNOT_REVIEW_SAME_BRANCH:
            return (
                "You cannot target code for review from the same branch "
                "as the review is targeted for"
            )
        case Kind.FAILED_TO_EXECUTE:
            return "Tried to fork a process, and failed"
        case Kind.PUSH_FAILED:
            return "Git Push failed!"
        case Kind.GIT_FAILED:
            return "Git command failed!"
        case Kind.GIT_SETUP_FAILED:
            return "Setup failed; you have already set up delivery."
        case Kind.BAD_GIT_OUTPUT_MATCH:
            return "A line of git porcelain did not match!"
        case Kind.NO_CONFIG:
            return "Cannot find a .git/config file"
        case Kind.CONFIG_PARSE:
            return "Failed to parse the cli config file"
        case Kind.MISSING_CONFIG:
            return "A configuration value is missing"
        case Kind.CONFIG_VALIDATION:
            return "A required option is missing - use the command line options or 'delivery setup'"
        case Kind.IO_ERROR:
            return "An I/O Error occurred"
        case Kind.JSON_ERROR:
            return "A JSON Parser error occurred"
        case Kind.JSON_ENCODE:
            return "A JSON Encoding error occurred"
        case Kind.NO_BUILD_COOKBOOK:
            return "No build_cookbook entry in .delivery/config.json"
        case Kind.NO_HOMEDIR:
            return "Cannot find a homedir"
        case Kind.BERKS_FAILED:
            return "Berkshelf command failed"
        case Kind.EXPECTED_JSON_STRING:
            return "Expected a JSON string"
        case Kind.NO_VALID_BUILD_COOKBOOK:
            return "Cannot find a valid build_cookbook entry in .delivery/config.json"
        case Kind.MISSING_BUILD_COOKBOOK_NAME:
            return "You must have a name field in your build_cookbook"
        case Kind.COPY_FAILED:
            return "Failed to copy files"
        case Kind.SUPERMARKET_FAILED:
            return "Failed to download a cookbook from the supermarket"
        case Kind.TAR_FAILED:
            return "Cannot untar a file"
        case Kind.MOVE_FAILED:
            return "Cannot move a file"
        case Kind.MISSING_BUILD_COOKBOOK_FIELD:
            return "Missing a required field in your build_cookbook"
        case Kind.CHEF_SERVER_FAILED:
            return "Failed to download a cookbook from the Chef Server"
        case Kind.CHOWN_FAILED:
            return "Cannot set ownership to the dbuild user and group"
        case Kind.CHEF_FAILED:
            return "Chef Client failed"
        case Kind.CHMOD_FAILED:
            return "Cannot set permissions"
        case Kind.UNSUPPORTED_HTTP_METHOD:
            return "Unsupported HTTP method"
        case Kind.JSON_PARSE_ERROR:
            return "Attempted to parse invalid JSON"
        case Kind.OPEN_FAILED:
            return "Open command failed"
        case Kind.AUTHENTICATION_FAILED:
            return "Authentication failed"
        case Kind.NO_TOKEN:
            return "Missing API token. Try `delivery token` to create one"
        case HttpTransportError():
            return "An HTTP Error occurred"
        case ApiError():
            return "An API Error occurred"
        case _:
            assert_never(kind)


def exit_code_for(kind: ErrorKind) -> int:
    """Map *kind* to a constant from :mod:`delivery.exit_codes`."""
    match kind:
        case Kind.AUTHENTICATION_FAILED | Kind.NO_TOKEN:
            return EXIT_AUTH_FAILURE
        case HttpTransportError():
            return EXIT_CONNECTION_ERROR
        case ApiError(status_code=404):
            return EXIT_NOT_FOUND
        case ApiError():
            return EXIT_SERVER_ERROR
        case Kind.JSON_ERROR | Kind.JSON_ENCODE | Kind.JSON_PARSE_ERROR | Kind.EXPECTED_JSON_STRING:
            return EXIT_DATA_ERROR
        case (
            Kind.CONFIG_PARSE
            | Kind.MISSING_CONFIG
            | Kind.CONFIG_VALIDATION
            | Kind.NO_CONFIG
            | Kind.NO_HOMEDIR
        ):
            return EXIT_CONFIG_ERROR
        case Kind.NO_MATCHING_COMMAND | Kind.UNSUPPORTED_HTTP_METHOD:
            return EXIT_INVALID_USAGE
        case _:
            return EXIT_GENERIC_FAILURE


class DeliveryError(Exception):
    """The single exception type raised by delivery operations.

    Args:
        kind: What went wrong.  Selects the description, the cause rule,
            and the exit code.
        detail: Optional diagnostic text.  Never part of ``str(error)``.

    Example::

        err = DeliveryError(Kind.AUTHENTICATION_FAILED, "token request returned 401")
        str(err)     # "Authentication failed"
        err.detail   # "token request returned 401"
    """

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None) -> None:
        super().__init__(kind, detail)
        self._kind = kind
        self._detail = detail

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def detail(self) -> Optional[str]:
        return self._detail

    @property
    def cause(self) -> Optional[Exception]:
        """The underlying exception carried by the kind, if any.

        Present for :class:`HttpTransportError`, and for :class:`ApiError`
        only when reading the response body failed.
        """
        match self._kind:
            case HttpTransportError(cause=exc):
                return exc
            case ApiError(body=Exception() as exc):
                return exc
            case _:
                return None

    @property
    def exit_code(self) -> int:
        return exit_code_for(self._kind)

    def __str__(self) -> str:
        return describe(self._kind)

    def __repr__(self) -> str:
        return f"DeliveryError(kind={self._kind!r}, detail={self._detail!r})"


# --- Conversions from external error domains ---


def _message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _validation_summary(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', '')}")
    return "; ".join(parts) or _message(exc)


def from_io_error(exc: BaseException) -> DeliveryError:
    """Local I/O failure, including failing to read a response body."""
    return DeliveryError(Kind.IO_ERROR, _message(exc))


def from_json_encode_error(exc: BaseException) -> DeliveryError:
    return DeliveryError(Kind.JSON_ENCODE, _message(exc))


def from_json_decode_error(exc: ValidationError) -> DeliveryError:
    """Well-formed JSON that does not fit the expected shape."""
    return DeliveryError(Kind.JSON_ERROR, _validation_summary(exc))


def from_json_parse_error(exc: ValueError) -> DeliveryError:
    """Text that is not JSON at all."""
    if isinstance(exc, ValidationError):
        return DeliveryError(Kind.JSON_PARSE_ERROR, _validation_summary(exc))
    return DeliveryError(Kind.JSON_PARSE_ERROR, _message(exc))


def from_http_error(exc: Exception) -> DeliveryError:
    return DeliveryError(HttpTransportError(exc), _message(exc))


@singledispatch
def classify(exc: Exception) -> DeliveryError:
    """Convert an external exception into a :class:`DeliveryError`.

    Raises:
        TypeError: If *exc* belongs to no supported domain.
    """
    raise TypeError(f"No conversion for {type(exc).__name__}")


classify.register(OSError, from_io_error)
classify.register(PydanticSerializationError, from_json_encode_error)
classify.register(json.JSONDecodeError, from_json_parse_error)
classify.register(httpx.HTTPError, from_http_error)
classify.register(httpx.InvalidURL, from_http_error)


@classify.register(ValidationError)
def _classify_validation(exc: ValidationError) -> DeliveryError:
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        return from_json_parse_error(exc)
    return from_json_decode_error(exc)


CONVERTIBLE: tuple[type[Exception], ...] = (
    OSError,
    PydanticSerializationError,
    json.JSONDecodeError,
    ValidationError,
    httpx.HTTPError,
    httpx.InvalidURL,
)
"""Exception types :func:`converting` turns into :class:`DeliveryError`."""


@contextmanager
def converting() -> Iterator[None]:
    """Convert supported external exceptions raised inside the block.

    :class:`DeliveryError` and any exception outside :data:`CONVERTIBLE`
    propagate unchanged.  The original exception is chained as
    ``__cause__``.
    """
    try:
        yield
    except CONVERTIBLE as exc:
        raise classify(exc) from exc
