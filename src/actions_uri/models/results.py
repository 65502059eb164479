"""Handler outcome models.

Every handler returns exactly one of two variants: ``HandlerSuccess`` carrying
a route-specific result payload, or ``HandlerFailure`` carrying an error code
and a human-readable message. Both are frozen; once produced they flow
unchanged to the result encoder.

Python attributes are snake_case. Serialized keys are camelCase
(``isSuccess``, ``processedFilepath``, ``frontMatter``) so HTTP responses keep
the established wire shape; the callback encoder kebab-cases them.
"""
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from actions_uri.exceptions import ActionsUriError, ErrorCode

_OUTCOME_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class ResultPayload(BaseModel):
    """Base class for success payloads."""

    model_config = _OUTCOME_CONFIG


class TextResult(ResultPayload):
    """A plain status message."""

    message: str


class PathsResult(ResultPayload):
    """A list of vault-relative note paths."""

    paths: List[str] = Field(default_factory=list)


class NoteDetails(ResultPayload):
    """Content and metadata of a single note."""

    filepath: str
    content: str
    body: str
    front_matter: str = ""
    properties: Dict[str, Any] = Field(default_factory=dict)


class PropertiesResult(ResultPayload):
    """Front matter of a note as a key/value mapping."""

    properties: Dict[str, Any] = Field(default_factory=dict)


class HelloResult(ResultPayload):
    """Discovery payload listing the actions below a namespace."""

    message: str
    actions: List[str] = Field(default_factory=list)


AnyResult = Union[NoteDetails, PropertiesResult, HelloResult, PathsResult, TextResult]


class HandlerSuccess(BaseModel):
    """A successful handler outcome."""

    model_config = _OUTCOME_CONFIG

    is_success: Literal[True] = True
    result: AnyResult
    processed_filepath: Optional[str] = None


class HandlerFailure(BaseModel):
    """A failed handler outcome."""

    model_config = _OUTCOME_CONFIG

    is_success: Literal[False] = False
    error_code: int
    error: str


Outcome = Union[HandlerSuccess, HandlerFailure]


def success(result: AnyResult, processed_filepath: Optional[str] = None) -> HandlerSuccess:
    """Wrap a payload in a success outcome."""
    return HandlerSuccess(result=result, processed_filepath=processed_filepath)


def failure(code: ErrorCode, message: str) -> HandlerFailure:
    """Build a failure outcome from an error code and message."""
    return HandlerFailure(error_code=code.value, error=message)


def failure_from_error(error: ActionsUriError) -> HandlerFailure:
    """Convert a raised domain error into a failure outcome."""
    return failure(error.code, error.message)


def outcome_to_json(outcome: Outcome) -> str:
    """Serialize an outcome for the HTTP transport.

    An absent ``processedFilepath`` is omitted; field order is fixed by the
    model, so identical outcomes always produce identical bytes. ``null``
    values inside properties are kept.
    """
    exclude = None
    if isinstance(outcome, HandlerSuccess) and outcome.processed_filepath is None:
        exclude = {"processed_filepath"}
    return outcome.model_dump_json(by_alias=True, exclude=exclude)
