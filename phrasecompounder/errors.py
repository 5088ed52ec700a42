"""
errors.py

Exception hierarchy for phrasecompounder.

All errors are raised while the phrase batch is being normalized or routed,
i.e. before any output is produced. A phrase that simply matches nothing is
not an error and never raises.
"""

from __future__ import annotations

from typing import Optional


class PhraseCompoundError(Exception):
    """Base class for every error raised by phrasecompounder."""


class PatternError(PhraseCompoundError, ValueError):
    """
    A phrase pattern could not be turned into a usable regular expression.

    Raised for empty phrases and for word-patterns that fail to compile
    (malformed glob or regex input).

    Attributes
    ----------
    phrase:
        The offending phrase as supplied by the caller.
    """

    def __init__(self, message: str, phrase: Optional[str] = None) -> None:
        super().__init__(message)
        self.phrase = phrase


class ExpansionLimitError(PatternError):
    """A wildcard phrase resolves to more fixed token sequences than allowed."""


class SpecLengthError(PhraseCompoundError, ValueError):
    """A phrase has more words than the supported maximum."""

    def __init__(self, message: str, phrase: Optional[str] = None) -> None:
        super().__init__(message)
        self.phrase = phrase


class DispatchError(PhraseCompoundError, TypeError):
    """No compounder handles the given input / phrase-source combination."""
