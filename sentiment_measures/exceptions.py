"""
exceptions.py
-------------
Error taxonomy for the sentiment measures pipeline.

Every error carries a human-readable message plus a ``details`` dict with
enough context (document id, date, measure name, window) to localise the
failure without re-running the full pipeline.
"""

from typing import Any, Dict, Optional


class SentimentMeasuresError(Exception):
    """Base exception for all sentiment measures errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        ctx = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({ctx})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }


class ConfigurationError(SentimentMeasuresError):
    """Invalid or contradictory options. Raised eagerly, never retried."""
    pass


class UnknownLexiconReference(ConfigurationError):
    """A referenced lexicon name or lexicon/language pair does not exist."""

    def __init__(
        self,
        message: str,
        lexicon: Optional[str] = None,
        language: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if lexicon is not None:
            details["lexicon"] = lexicon
        if language is not None:
            details["language"] = language
        super().__init__(message, details)
        self.lexicon = lexicon
        self.language = language


class AmbiguousMeasureName(ConfigurationError):
    """A feature, lexicon or scheme name contains the reserved separator."""

    def __init__(self, component: str, separator: str, kind: str = "component"):
        super().__init__(
            f"{kind} name {component!r} contains reserved separator {separator!r}",
            {"kind": kind, "name": component},
        )
        self.component = component


class DataAlignmentError(SentimentMeasuresError):
    """Date index mismatch, duplicate or non-monotonic dates."""
    pass


class TargetMisaligned(DataAlignmentError):
    """Target dates do not overlap the sentiment measure dates."""
    pass


class EmptyDocumentSet(SentimentMeasuresError):
    """No documents remain to be scored."""
    pass


class InsufficientHistoryError(SentimentMeasuresError):
    """Fewer observations than a lag or training window requires."""

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        available: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if required is not None:
            details["required"] = required
        if available is not None:
            details["available"] = available
        super().__init__(message, details)
        self.required = required
        self.available = available


class NumericDegeneracyWarning(UserWarning):
    """A degenerate computation was recovered with a sentinel value."""
    pass
