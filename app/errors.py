# app/errors.py
from __future__ import annotations
from typing import Any, Callable, Dict, Optional
import functools
import logging
import traceback

logger = logging.getLogger(__name__)


INVALID_INPUT = "INVALID_INPUT"
PARSE_ERROR = "PARSE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


class EngineError(Exception):
    """
    Base error for the validate/repair/explain entry points.
    Carries a stable code so adapters can build an error envelope.
    """

    code: str = INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out


class InvalidInputError(EngineError):
    code = INVALID_INPUT


class ParseFailedError(EngineError):
    code = PARSE_ERROR


class InternalError(EngineError):
    code = INTERNAL_ERROR


def guarded(operation: str) -> Callable:
    """
    Outer boundary for an entry point: EngineErrors pass through, anything
    else becomes INTERNAL_ERROR with the traceback in details["trace"].
    """
    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except EngineError:
                raise
            except Exception as e:
                logger.exception("%s failed", operation)
                raise InternalError(
                    f"{operation} failed: {e}", {"trace": traceback.format_exc()}
                ) from e
        return wrapper
    return decorator
