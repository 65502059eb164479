"""URI-callback transport.

An incoming call is an action name plus a flat parameter map, as delivered
for ``obsidian://actions-uri/note/get?file=Foo&x-success=...``. The outcome
is reported by opening the caller's x-success or x-error URL; failures
without a usable x-error go to the error reporter instead.
"""
import logging
import webbrowser
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from actions_uri.exceptions import RouteNotFoundError
from actions_uri.models.params import is_absolute_url
from actions_uri.models.results import HandlerFailure, Outcome, failure_from_error
from actions_uri.routing.registry import normalize_route_path
from actions_uri.server.callbacks import Opener, send_url_callback
from actions_uri.server.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[str], Any]


def _log_error(message: str) -> None:
    logger.error(f"Action failed: {message}")


@dataclass(frozen=True)
class UriCallResult:
    """What a URI call produced: the outcome and the callback URL opened, if any."""

    outcome: Outcome
    callback_url: Optional[str] = None


def parse_action_uri(uri: str, scheme: str = "obsidian") -> Tuple[str, Dict[str, str]]:
    """Split ``<scheme>://<action path>?<query>`` into (action, params).

    Repeated query keys keep their last value.

    Raises:
        ValueError: If the URI uses a different scheme.
    """
    parts = urlsplit(uri)
    if parts.scheme.lower() != scheme.lower():
        raise ValueError(f"Expected a {scheme}:// URI, got '{uri}'")
    action = f"{parts.netloc}{parts.path}"
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    return action, params


class UriTransport:
    """Front door for URI-scheme calls."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        opener: Opener = webbrowser.open,
        error_reporter: ErrorReporter = _log_error,
        scheme: str = "obsidian",
    ):
        self.dispatcher = dispatcher
        self.opener = opener
        self.error_reporter = error_reporter
        self.scheme = scheme

    def handle_uri(self, uri: str) -> UriCallResult:
        """Handle a complete action URI."""
        action, params = parse_action_uri(uri, self.scheme)
        return self.handle_call(action, params)

    def handle_call(self, action: str, params: Mapping[str, Any]) -> UriCallResult:
        """Handle one incoming call and report its outcome."""
        path = normalize_route_path(action)
        raw = dict(params)
        raw.setdefault("action", action)

        route = self.dispatcher.lookup(path)
        if route is None:
            logger.warning(f"No route registered for {path}")
            outcome = failure_from_error(RouteNotFoundError(path))
        else:
            outcome = self.dispatcher.dispatch(
                route, raw, require_callbacks=route.returns_data, transport="uri"
            )
        return UriCallResult(outcome=outcome, callback_url=self._report(outcome, raw))

    def _report(self, outcome: Outcome, raw: Mapping[str, Any]) -> Optional[str]:
        if isinstance(outcome, HandlerFailure):
            target = raw.get("x-error")
            if is_absolute_url(target):
                return send_url_callback(target, outcome, raw, self.opener)
            self.error_reporter(outcome.error)
            return None

        target = raw.get("x-success")
        if is_absolute_url(target):
            return send_url_callback(target, outcome, raw, self.opener)
        return None
