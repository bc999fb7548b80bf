from __future__ import annotations
"""Error taxonomy for the resolution engine.

Only the submission path raises. Structural problems in a snapshot are
recorded as :class:`StructuralWarning` instances and analysis carries on.
"""
from .model import CycleReport

__all__ = [
    "EverywhereError",
    "CycleDetected",
    "BusySubmission",
    "StructuralWarning",
]


class EverywhereError(Exception):  # noqa: D101
    pass


class CycleDetected(EverywhereError):
    """The augmented graph contains a loop; the payload must not be submitted."""

    def __init__(self, report: CycleReport):
        self.report = report
        super().__init__(f"{report.describe()} - not submitting workflow")


class BusySubmission(EverywhereError):
    """Another submission analysis is still in flight; retry later."""

    def __init__(self, message: str = "a submission is already being analysed"):
        super().__init__(message)


class StructuralWarning(UserWarning):
    """A malformed reference in the host graph; recorded, never raised."""
