"""
errors.py — Failure taxonomy for the agent output pipeline
===========================================================
Content-level failures (the ParseError family) are recovered inside the
retry loop; only TerminalParseFailure and UnexpectedFailure reach callers.

  ParseError                      base: message, raw_content, cause
  ├── StructuralExtractionFailure no {...} / [...] structure in the text
  ├── JsonSyntaxFailure           candidate found but json.loads() rejects it
  ├── SchemaValidationFailure     parses, but violates the output contract
  └── TerminalParseFailure        retry budget exhausted; cause = last failure

  UnexpectedFailure               the generation backend itself failed
"""

from __future__ import annotations

from typing import Optional


class ParseError(Exception):
    """Raised when raw model text cannot be turned into a contract-valid value."""

    def __init__(
        self,
        message: str,
        raw_content: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message     = message
        self.raw_content = raw_content
        self.cause       = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message


class StructuralExtractionFailure(ParseError):
    """No brace or bracket structure found in the fence-stripped text."""


class JsonSyntaxFailure(ParseError):
    """A candidate substring was extracted but does not parse, even after repair."""


class SchemaValidationFailure(ParseError):
    """Parsed value violates the declared output contract."""

    def __init__(
        self,
        message: str,
        raw_content: str,
        cause: Optional[BaseException] = None,
        fields: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, raw_content, cause)
        self.fields = list(fields or [])


class TerminalParseFailure(ParseError):
    """Every attempt in the retry budget produced a content-level failure."""

    def __init__(
        self,
        message: str,
        raw_content: str,
        cause: Optional[ParseError] = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message, raw_content, cause)
        self.attempts = attempts

    @property
    def last_error(self) -> Optional[ParseError]:
        return self.cause  # type: ignore[return-value]


class UnexpectedFailure(Exception):
    """The generation backend failed (network, auth, timeout). Never retried here."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause   = cause
        if cause is not None:
            self.__cause__ = cause
