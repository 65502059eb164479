"""Custom exceptions for the Actions URI server.

Provides a structured exception hierarchy with error codes and
machine-readable error information. Pipeline stages raise these; the
dispatcher turns them into Failure outcomes before they reach a transport.
"""
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Note errors (1xxx)
    NOT_FOUND = 1001
    NOTE_ALREADY_EXISTS = 1002
    UNABLE_TO_CREATE_NOTE = 1003
    UNABLE_TO_WRITE_NOTE = 1004
    AMBIGUOUS_TARGET = 1005

    # Plugin errors (3xxx)
    MISSING_PLUGIN = 3001
    PLUGIN_DISABLED = 3002
    PLUGIN_FAILED = 3003

    # Storage errors (4xxx)
    STORAGE_READ_FAILED = 4001
    STORAGE_WRITE_FAILED = 4002
    STORAGE_DELETE_FAILED = 4003

    # Configuration errors (6xxx)
    CONFIG_INVALID = 6001
    DUPLICATE_ROUTE = 6002

    # Validation errors (7xxx)
    VALIDATION_FAILED = 7001
    INVALID_REGEX = 7002
    PATH_TRAVERSAL_DETECTED = 7003

    # Transport errors (8xxx)
    TRANSPORT_NOT_FOUND = 8001

    # Internal errors (9xxx)
    UNEXPECTED_ERROR = 9001


class ActionsUriError(Exception):
    """Base exception for all Actions URI errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


class NoteNotFoundError(ActionsUriError):
    """Raised when a targeted note cannot be found."""

    def __init__(self, path: Optional[str] = None, message: Optional[str] = None):
        details = {"path": path} if path else {}
        super().__init__(
            message or "Note couldn't be found",
            code=ErrorCode.NOT_FOUND,
            details=details
        )
        self.path = path


class NoteAlreadyExistsError(ActionsUriError):
    """Raised when creating a note at a path that is already taken."""

    def __init__(self, path: str):
        super().__init__(
            f"Note already exists at '{path}'",
            code=ErrorCode.NOTE_ALREADY_EXISTS,
            details={"path": path}
        )
        self.path = path


class AmbiguousTargetError(ActionsUriError):
    """Raised when an identifier matches more than one note."""

    def __init__(self, uid: str, paths: List[str]):
        super().__init__(
            f"More than one note carries the identifier '{uid}'",
            code=ErrorCode.AMBIGUOUS_TARGET,
            details={"uid": uid, "paths": paths[:10]}
        )
        self.uid = uid
        self.paths = list(paths)


class ParameterValidationError(ActionsUriError):
    """Raised when incoming parameters are rejected.

    Carries one entry per offending field, so callers see every problem
    with a request at once rather than only the first.

    Attributes:
        field_errors: List of ``{"field": ..., "message": ...}`` entries
    """

    def __init__(
        self,
        field_errors: List[Dict[str, str]],
        code: ErrorCode = ErrorCode.VALIDATION_FAILED
    ):
        self.field_errors = list(field_errors)
        lines = [
            f"{e['field']}: {e['message']}" if e.get("field") else e["message"]
            for e in self.field_errors
        ]
        super().__init__(
            "Incoming call failed: " + "; ".join(lines),
            code=code,
            details={"fields": [e.get("field", "") for e in self.field_errors]}
        )

    @classmethod
    def single(cls, field: str, message: str) -> "ParameterValidationError":
        return cls([{"field": field, "message": message}])


class StorageError(ActionsUriError):
    """Raised for document store errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        path: Optional[str] = None,
        code: ErrorCode = ErrorCode.STORAGE_READ_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if path:
            details["path"] = path
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.operation = operation
        self.path = path
        self.original_error = original_error


class PluginError(ActionsUriError):
    """Raised when a companion plugin is missing, disabled or fails."""

    def __init__(
        self,
        message: str,
        plugin_name: Optional[str] = None,
        code: ErrorCode = ErrorCode.MISSING_PLUGIN
    ):
        details = {}
        if plugin_name:
            details["plugin"] = plugin_name

        super().__init__(message, code=code, details=details)
        self.plugin_name = plugin_name


class RouteNotFoundError(ActionsUriError):
    """Raised when no route is registered for an action path."""

    def __init__(self, path: str):
        super().__init__(
            f"Unknown action '{path}'",
            code=ErrorCode.TRANSPORT_NOT_FOUND,
            details={"path": path}
        )
        self.path = path


class DuplicateRouteError(ActionsUriError):
    """Raised when two routes normalize to the same full path."""

    def __init__(self, path: str):
        super().__init__(
            f"Route '{path}' is already registered",
            code=ErrorCode.DUPLICATE_ROUTE,
            details={"path": path}
        )
        self.path = path


class ConfigurationError(ActionsUriError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, code=code, details=details)
        self.config_key = config_key
