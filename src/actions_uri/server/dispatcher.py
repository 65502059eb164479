"""Dispatcher shared by both transports.

Runs registry lookup results through the parameter pipeline and the
handler, turning every raised error into a ``HandlerFailure`` so a
transport only ever sees typed outcomes.
"""
import logging
import threading
import uuid
from typing import Any, Mapping, Optional

from actions_uri.exceptions import ActionsUriError, ErrorCode, ParameterValidationError
from actions_uri.models.results import HandlerFailure, Outcome, failure, failure_from_error
from actions_uri.observability import timed_operation
from actions_uri.routing.context import ActionServices
from actions_uri.routing.pipeline import run_pipeline
from actions_uri.routing.registry import Route, RouteRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    """Serializes calls and invokes route handlers.

    One lock covers the whole pipeline, so each request runs to completion
    before the next one starts, whichever transport it came from.
    """

    def __init__(self, registry: RouteRegistry, services: ActionServices):
        self.registry = registry
        self.services = services
        self._lock = threading.Lock()

    def lookup(self, path: str) -> Optional[Route]:
        return self.registry.lookup(path)

    def format_error_outcome(self, error: Exception) -> HandlerFailure:
        """Turn an exception into a failure outcome.

        Args:
            error: The exception that occurred

        Returns:
            Failure with the domain error code, or a generic message for
            unexpected errors
        """
        error_id = str(uuid.uuid4())[:8]

        if isinstance(error, ParameterValidationError):
            logger.info(f"[{error.code.name}] [{error_id}]: {error.message}")
            return failure_from_error(error)
        elif isinstance(error, ActionsUriError):
            logger.error(
                f"[{error.code.name}] [{error_id}]: {error.message}",
                extra={"error_details": error.details},
            )
            return failure_from_error(error)
        elif isinstance(error, (IOError, OSError)):
            logger.error(f"File system error [{error_id}]: {str(error)}", exc_info=True)
            return failure(
                ErrorCode.STORAGE_WRITE_FAILED,
                f"A file system error occurred (ref: {error_id})",
            )
        else:
            logger.error(f"Unexpected error [{error_id}]: {str(error)}", exc_info=True)
            return failure(
                ErrorCode.UNEXPECTED_ERROR,
                f"An unexpected error occurred (ref: {error_id})",
            )

    def dispatch(
        self,
        route: Route,
        raw: Mapping[str, Any],
        require_callbacks: bool = False,
        transport: str = "http",
    ) -> Outcome:
        """Validate, resolve and handle one call.

        Validation and targeting failures return before the handler runs.
        """
        with self._lock, timed_operation(route.path, transport=transport) as op:
            try:
                ctx = run_pipeline(route, raw, self.services, require_callbacks)
                outcome = route.handler(ctx, self.services)
            except Exception as e:
                outcome = self.format_error_outcome(e)

            if isinstance(outcome, HandlerFailure):
                op["failed"] = outcome.error
            elif outcome.processed_filepath:
                op["path"] = outcome.processed_filepath
            return outcome
