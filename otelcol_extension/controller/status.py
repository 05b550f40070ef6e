"""Outcome of the last reconciliation pass of a resource."""

from enum import StrEnum
from dataclasses import dataclass


class Status(StrEnum):
    """Where the last pass for an extension resource ended up."""

    PENDING = "Pending"
    READY = "Ready"
    FAILED = "Failed"


@dataclass
class StatusInfo:
    """Last pass result as recorded by the controller.

    A failed pass carries the error text and whether running the same pass
    again, with unchanged input, may succeed.
    """

    status: Status
    error: str | None = None
    retryable: bool = False

    def __str__(self) -> str:
        if self.status != Status.FAILED:
            return str(self.status)
        hint = "retryable" if self.retryable else "not retryable"
        return f"{self.status} ({hint}): {self.error}"
