"""Error hierarchy for the configtree package."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "ConfigTreeError",
    "MalformedPathError",
    "UnknownSerializableTypeError",
    "DeserializationError",
    "CodecError",
    "ConfigNotFoundError",
    "InvalidInputError",
    "ErrorCodes",
]


class ConfigTreeError(Exception):
    """Base error for all configtree errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class MalformedPathError(ConfigTreeError):
    """Raised when a dotted path is empty or contains an empty segment."""

    def __init__(self, path: Any, reason: str = "empty path segment", **kwargs: Any) -> None:
        super().__init__(
            code="MALFORMED_PATH",
            message=f"Malformed path {path!r}: {reason}",
            details={"path": path, "reason": reason},
            **kwargs,
        )

    @property
    def path(self) -> Any:
        """The offending path."""
        return self.details["path"]


class UnknownSerializableTypeError(ConfigTreeError):
    """Raised when no registered descriptor resolves a type identifier."""

    def __init__(self, identifier: str, registry: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            code="UNKNOWN_SERIALIZABLE_TYPE",
            message=f"No serializable type registered for '{identifier}'",
            details={"identifier": identifier, "registry": registry},
            **kwargs,
        )

    @property
    def identifier(self) -> str:
        """The raw identifier that failed to resolve."""
        return self.details["identifier"]


class DeserializationError(ConfigTreeError):
    """Raised when a descriptor rejects the payload of a tagged section."""

    def __init__(self, identifier: str | None, reason: str, **kwargs: Any) -> None:
        target = f"'{identifier}'" if identifier else "tagged section"
        super().__init__(
            code="DESERIALIZATION_ERROR",
            message=f"Cannot deserialize {target}: {reason}",
            details={"identifier": identifier, "reason": reason},
            **kwargs,
        )

    @property
    def identifier(self) -> str | None:
        """The type identifier read from the marker key, if any."""
        return self.details["identifier"]


class CodecError(ConfigTreeError):
    """Raised when the text codec cannot parse or render a document."""

    def __init__(self, message: str, source: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            code="CODEC_ERROR",
            message=message,
            details={"source": source},
            **kwargs,
        )


class ConfigNotFoundError(ConfigTreeError):
    """Raised when a configuration file cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration file not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class InvalidInputError(ConfigTreeError):
    """Raised for invalid arguments to the public API."""

    def __init__(self, message: str = "Invalid input", **kwargs: Any) -> None:
        super().__init__(code="GENERAL_INVALID_INPUT", message=message, **kwargs)


class ErrorCodes:
    """All configtree error codes as constants.

    Example:
        if error.code == ErrorCodes.CODEC_ERROR:
            fall_back_to_defaults()
    """

    MALFORMED_PATH = "MALFORMED_PATH"
    UNKNOWN_SERIALIZABLE_TYPE = "UNKNOWN_SERIALIZABLE_TYPE"
    DESERIALIZATION_ERROR = "DESERIALIZATION_ERROR"
    CODEC_ERROR = "CODEC_ERROR"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    GENERAL_INVALID_INPUT = "GENERAL_INVALID_INPUT"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
