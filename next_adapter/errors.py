"""Error taxonomy for bundle compilation.

Every error here aborts the build; nothing is retried and no partial bundle
is cleaned up. The bundle directory must be discarded by the caller.
"""

from __future__ import annotations


class AdapterError(Exception):
    """Base class for build-aborting failures."""


class InvariantError(AdapterError):
    """The build outputs are internally inconsistent."""


class ClassificationError(AdapterError):
    """A function output declared an execution target we cannot package."""


class PackagingError(AdapterError):
    """A file-system operation failed while placing or packaging an output."""

    def __init__(self, output_id: str, pathname: str, reason: str) -> None:
        super().__init__(f"Failed to package output {output_id} ({pathname}): {reason}")
        self.output_id = output_id
        self.pathname = pathname


class PatternError(AdapterError):
    """A redirect/rewrite/header source could not be compiled."""
