"""Refinery exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RefineryError(Exception):
    """Base exception for all Refinery failures."""


class RefineryConfigError(RefineryError):
    """Raised for invalid runtime configuration or run options."""


class RefineryDiscoveryError(RefineryError):
    """Raised when input or output directories cannot be scanned."""


class RefineryPluginError(RefineryError):
    """Raised when the refinement plugin cannot be loaded or is incomplete."""


class RefineryTransformError(RefineryError):
    """Raised when a per-item refinement or translation fails."""


class RefineryPersistError(RefineryError):
    """Raised for artifact, ledger, and export write failures."""


class RefineryReportError(RefineryError):
    """Raised when one or more report field files could not be written."""


class RefineryDependencyError(RefineryError):
    """Raised when an optional runtime dependency is missing."""


class RefineryParamsError(RefineryError):
    """Raised for invalid pipeline parameter files."""
