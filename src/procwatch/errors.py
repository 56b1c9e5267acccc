"""Exception types shared across procwatch."""

from __future__ import annotations


class ProcwatchError(Exception):
    """Base class for procwatch errors."""


class RuleConfigError(ProcwatchError, ValueError):
    """An extraction rule or config file could not be loaded."""


class ExtractionTimeout(ProcwatchError, TimeoutError):
    """A bounded unit of work ran past its deadline."""


class PidStoreError(ProcwatchError, OSError):
    """The PID record exists but could not be read."""
