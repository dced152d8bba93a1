"""Exceptions raised by the sales rollup engine and its storage adapters."""

from __future__ import annotations


class SalesboardError(RuntimeError):
    """Base class for salesboard errors."""


class ValidationError(SalesboardError, ValueError):
    """Raised when an input value (import line, daily entry field) is malformed."""


class PersistenceError(SalesboardError):
    """Raised when a storage adapter fails to read or write."""


class EntryNotFoundError(SalesboardError, KeyError):
    """Raised when a daily entry id is not in the ledger."""
