"""
Base Exception Classes

Core exception hierarchy for the cache package.

Every cache operation reports failures through one of these classes. The
``code`` attribute names the failure class so callers (and tests) can
branch on it without caring which adapter produced the error.
"""

from typing import Optional, Dict, Any


class CacheError(Exception):
    """Base exception for all cache errors."""

    code = "error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_exception = original_exception
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(CacheError):
    """A key, field or path is absent."""

    code = "not_found"


class PathNotFoundError(NotFoundError):
    """A JSON document path does not resolve."""

    def __init__(
        self,
        path: str,
        details: Optional[Dict[str, Any]] = None
    ):
        # Same literal the remote JSON backend replies with
        address = "$" if path in ("", "$") else f"$.{path}"
        super().__init__(f"ERR Path '{address}' does not exist", details)
        self.path = path

        # Add to details
        self.details["path"] = path


class BadRequestError(CacheError):
    """Structurally invalid operation."""

    code = "bad_request"


class UnsupportedError(CacheError):
    """Operation the active adapter does not provide."""

    code = "unsupported"

    def __init__(
        self,
        operation: str,
        adapter: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        message = f"{operation} is not supported"
        if adapter:
            message = f"{operation} is not supported by the {adapter} adapter"
        super().__init__(message, details)
        self.operation = operation
        self.adapter = adapter

        # Add to details
        self.details["operation"] = operation
        self.details["adapter"] = adapter


class InternalError(CacheError):
    """Unexpected record shape or state."""

    code = "internal"

    def __init__(
        self,
        message: str,
        key: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.key = key

        # Add to details
        self.details["key"] = None if key is None else str(key)


class ConfigurationError(CacheError):
    """Configuration-related errors."""

    code = "configuration"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.config_key = config_key

        # Add to details
        self.details["config_key"] = config_key


class ServiceError(CacheError):
    """Backend service failures."""

    code = "service_unavailable"

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, details, original_exception)
        self.service_name = service_name
        self.operation = operation

        # Add to details
        self.details["service_name"] = service_name
        self.details["operation"] = operation
