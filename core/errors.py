"""Errors raised while reconciling a directory with the timestamp cache."""

from __future__ import annotations


class ReconcileError(Exception):
    """Base class for failures that abort a reconciliation pass."""


class NotResolvable(ReconcileError):
    """The given path has no usable directory to list."""


class FilesystemError(ReconcileError):
    """Listing the directory or reading file attributes failed."""


class StoreError(ReconcileError):
    """Schema, read, or write failure on the persisted timestamp store."""
