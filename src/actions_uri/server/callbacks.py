"""Callback URL encoding for the URI transport.

A result is reported by opening the caller's x-success or x-error URL with
the outcome appended as query parameters:

- success payload fields as ``result-<kebab-key>``
- failures as ``error`` and ``error-code``
- an ``input-*`` echo: only ``input-call-id``, or every raw input field
  except ``debug-mode``, ``x-success`` and ``x-error`` in debug mode

All added parameters are sorted by their hyphenated key. Strings are
written as-is, everything else JSON-encoded, so the URL is a pure
function of (outcome, input parameters).
"""
import json
import logging
import webbrowser
from typing import Any, Callable, List, Mapping, Tuple
from urllib.parse import urlencode

from actions_uri.models.params import parse_bool_token
from actions_uri.models.results import HandlerFailure, Outcome
from actions_uri.utils import kebab_case

logger = logging.getLogger(__name__)

RESULT_PREFIX = "result"
INPUT_PREFIX = "input"
ECHO_EXCLUDED_KEYS = frozenset({"debug-mode", "x-success", "x-error"})

Opener = Callable[[str], Any]


def _encode_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _prefixed(values: Mapping[str, Any], prefix: str) -> List[Tuple[str, str]]:
    return [(kebab_case(f"{prefix}-{key}"), _encode_value(value)) for key, value in values.items()]


def _debug_requested(raw: Mapping[str, Any]) -> bool:
    try:
        return parse_bool_token(raw.get("debug-mode"))
    except ValueError:
        return False


def echo_params(raw: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """The ``input-*`` group for a call's raw parameters."""
    if _debug_requested(raw):
        echoed = {k: v for k, v in raw.items() if k not in ECHO_EXCLUDED_KEYS}
    else:
        echoed = {k: v for k, v in raw.items() if k == "call-id"}
    return _prefixed(echoed, INPUT_PREFIX)


def callback_params(outcome: Outcome, raw: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """All query parameters added to a callback URL, sorted by key."""
    if isinstance(outcome, HandlerFailure):
        params = [("error", outcome.error), ("error-code", str(outcome.error_code))]
    else:
        payload = outcome.result.model_dump(by_alias=True, mode="json")
        params = _prefixed(payload, RESULT_PREFIX)
    params.extend(echo_params(raw))
    return sorted(params, key=lambda pair: pair[0])


def build_callback_url(base_url: str, outcome: Outcome, raw: Mapping[str, Any]) -> str:
    """Append the encoded outcome to ``base_url``.

    The base may already carry a query string or a fragment, and may have no
    path at all (``another-app://``).
    """
    url, hash_mark, fragment = base_url.partition("#")
    query = urlencode(callback_params(outcome, raw))
    if not query:
        return base_url
    if "?" not in url:
        url += "?"
    elif not url.endswith(("?", "&")):
        url += "&"
    return f"{url}{query}{hash_mark}{fragment}"


def send_url_callback(
    base_url: str,
    outcome: Outcome,
    raw: Mapping[str, Any],
    opener: Opener = webbrowser.open,
) -> str:
    """Build the callback URL, open it and return it."""
    url = build_callback_url(base_url, outcome, raw)
    logger.debug(f"Opening callback {url}")
    opener(url)
    return url
