"""Parameter models shared by all actions.

Everything a transport hands us is a string, so the reusable field types
below parse string tokens (booleans, JSON arrays and objects, URLs, note
paths) into real Python values. Route modules build their schemata from
``IncomingParams`` and ``NoteTargetingParams``.
"""
import json
import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Mapping, Optional, Type

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from actions_uri.utils import sanitize_file_path

TRUTHY_TOKENS = frozenset({"true", "1", "yes", "on"})
FALSY_TOKENS = frozenset({"false", "0", "no", "off", ""})

_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")


class TargetingKey(str, Enum):
    """The mutually exclusive fields that can address a note."""

    FILE = "file"
    UID = "uid"
    PERIODIC_NOTE = "periodic-note"


class PeriodicNoteType(str, Enum):
    """Types of periodic notes."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def parse_bool_token(value: Any) -> bool:
    """Parse a boolean-like transport token.

    Missing values are handled by field defaults; an empty string is false.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str) and value.strip().lower() in TRUTHY_TOKENS:
        return True
    if isinstance(value, str) and value.strip().lower() in FALSY_TOKENS:
        return False
    allowed = sorted(TRUTHY_TOKENS | FALSY_TOKENS - {""})
    raise ValueError(f"expected a boolean ({', '.join(allowed)})")


def _always_false(value: Any) -> bool:
    return False


def _empty_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_non_empty(value: str) -> str:
    if not value:
        raise ValueError("can't be empty")
    return value


def _check_note_path(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    path = sanitize_file_path(value)
    if not path:
        raise ValueError("must be a valid note path")
    return path


def is_absolute_url(value: Any) -> bool:
    """True for a string with a URL scheme and no whitespace."""
    return (
        isinstance(value, str)
        and bool(_URL_SCHEME.match(value))
        and not any(c.isspace() for c in value)
    )


def _check_absolute_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not is_absolute_url(value):
        raise ValueError("must be a valid absolute URL")
    return value


def _parse_json_string_array(value: Any) -> List[str]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError("must be a JSON array of strings") from None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("must be a JSON array of strings")
    return value


def _parse_json_properties(value: Any) -> Dict[str, Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError("must be a JSON object") from None
    if not isinstance(value, dict):
        raise ValueError("must be a JSON object")
    for key, item in value.items():
        if item is not None and not isinstance(item, (str, int, float, bool)):
            raise ValueError(
                f"property '{key}' must be a string, number, boolean or null"
            )
    return value


# ---------------------------------------------------------------------------
# Reusable field types
# ---------------------------------------------------------------------------

OptionalBool = Annotated[bool, BeforeValidator(parse_bool_token)]
AlwaysFalse = Annotated[bool, BeforeValidator(_always_false)]
NonEmptyStr = Annotated[str, AfterValidator(_check_non_empty)]
OptionalStr = Annotated[Optional[str], BeforeValidator(_empty_to_none)]
SanitizedNotePath = Annotated[str, AfterValidator(_check_note_path)]
OptionalNotePath = Annotated[
    Optional[str], BeforeValidator(_empty_to_none), AfterValidator(_check_note_path)
]
OptionalUrl = Annotated[
    Optional[str], BeforeValidator(_empty_to_none), AfterValidator(_check_absolute_url)
]
JsonStringArray = Annotated[List[str], BeforeValidator(_parse_json_string_array)]
JsonPropertiesObject = Annotated[Dict[str, Any], BeforeValidator(_parse_json_properties)]
OptionalPeriodicNote = Annotated[
    Optional[PeriodicNoteType], BeforeValidator(_empty_to_none)
]


# ---------------------------------------------------------------------------
# Base parameter models
# ---------------------------------------------------------------------------


class IncomingParams(BaseModel):
    """Parameters every action accepts.

    Unknown keys are kept (and echoed back in debug mode) but never
    interpreted.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    action: str
    call_id: OptionalStr = Field(default=None, alias="call-id")
    debug_mode: OptionalBool = Field(default=False, alias="debug-mode")
    x_success: OptionalUrl = Field(default=None, alias="x-success")
    x_error: OptionalUrl = Field(default=None, alias="x-error")
    vault: OptionalStr = None

    @classmethod
    def select_variant(cls, raw: Mapping[str, Any]) -> Type["IncomingParams"]:
        """Pick the concrete model for a raw parameter set.

        Schemata with several shapes (e.g. note creation) override this.
        """
        return cls


class NoteTargetingParams(IncomingParams):
    """Parameters of actions that address a single note."""

    file: OptionalNotePath = None
    uid: OptionalStr = None
    periodic_note: OptionalPeriodicNote = Field(default=None, alias="periodic-note")

    def targeting_fields(self) -> Dict[TargetingKey, Any]:
        """Return the supplied (non-empty) targeting fields."""
        supplied = {}
        for key in TargetingKey:
            value = getattr(self, key.value.replace("-", "_"), None)
            if value:
                supplied[key] = value
        return supplied
