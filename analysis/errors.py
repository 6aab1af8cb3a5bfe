"""Exceptions raised by the analysis pipeline."""
from __future__ import annotations


class AnalyzeError(Exception):
    """Base class for every error the pipeline raises on its own."""


class ParseError(AnalyzeError, ValueError):
    """A field or row could not be interpreted."""


class ColumnError(AnalyzeError, ValueError):
    """A column registration or lookup is inconsistent."""


class AlignmentError(AnalyzeError):
    """Resource samples cannot be lined up with the benchmark rows."""


class CadenceError(AlignmentError):
    """Tables compared by position were sampled at different intervals."""


class ConfigError(AnalyzeError):
    """The run configuration is missing, malformed or inconsistent."""
