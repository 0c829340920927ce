"""Sweep error taxonomy."""

from __future__ import annotations


class SweepError(Exception):
    """Base class for every error raised by the sweep engine."""


class InvalidRange(SweepError, ValueError):
    """Malformed λ range (start <= 0, end < start, steps < 1)."""


class InvalidConcurrencyBound(SweepError, ValueError):
    """Explicit worker bound that is zero, negative or not an integer."""


class InvalidSweepConfig(SweepError, ValueError):
    """Any other configuration value the sweep cannot run with."""


class SolverError(SweepError, RuntimeError):
    """A single solve could not proceed. Isolated to that run's outcome."""


class ImageDecodeError(SweepError, OSError):
    """The shared input image could not be read. Fatal to the whole sweep."""


class ImageWriteError(SweepError, OSError):
    """One output image could not be encoded or written."""
