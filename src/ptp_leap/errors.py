"""Exception types raised by the leap file suite."""

from __future__ import annotations


class AnnouncementNotFoundError(LookupError):
    """No leap announcement block was found in a leap record."""


class WaitTimeoutError(TimeoutError):
    """A polling wait ran out of time before its condition was met."""


class ClusterError(RuntimeError):
    """A Kubernetes API call failed or returned an unexpected object."""


class MetricsError(RuntimeError):
    """The metrics backend could not be queried."""


class MetricAssertionError(AssertionError):
    """A metric did not reach the expected state within the timeout."""
