"""Exception types shared by the scrape and map services.

Caller-input problems derive from :class:`ValueError` and infrastructure
problems from :class:`RuntimeError`, so the routers can keep mapping them the
same way (400 vs 5xx).
"""

from typing import List


class SchemaValidationError(ValueError):
    """A caller-supplied extraction schema is not accepted by the provider."""


class EngineFailure(RuntimeError):
    """A single retrieval engine could not produce the page."""


class EnginesExhaustedError(RuntimeError):
    """Every engine in the fallback chain failed."""

    def __init__(self, reason: str, attempts: List = None):
        super().__init__(reason)
        self.reason = reason
        self.attempts = attempts or []


class ExtractionError(RuntimeError):
    """The structured-extraction backend failed for one format."""


class ScrapeTimeoutError(TimeoutError):
    """The scrape did not finish within the caller's deadline."""


class MapTimeoutError(TimeoutError):
    """Link discovery did not settle within the caller's deadline."""
