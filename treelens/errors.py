"""Exception types raised by treelens."""

from __future__ import annotations


class TreelensError(Exception):
    """Base class for all treelens errors."""


class SchemaLoadError(TreelensError):
    """A node-types schema document could not be read or decoded."""


class NodeContractError(TreelensError):
    """A CST node violated the node capability contract (e.g. a reversed span)."""


class UnsupportedLanguageError(TreelensError, ValueError):
    """No grammar or language profile is available for the requested language."""
