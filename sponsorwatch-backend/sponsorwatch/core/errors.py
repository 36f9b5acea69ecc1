"""
Crawl error kinds.

Every expected failure in the pipeline is one of these. They are returned
inside ``Err`` rather than raised across layer boundaries; the orchestrator
decides whether a given failure is fatal or only recorded as a stage failure.
"""
from __future__ import annotations


class CrawlError(Exception):
    """Base class for all typed crawl failures."""

    kind = "crawl_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class InvalidInputError(CrawlError):
    kind = "invalid_input"


class NotFoundError(CrawlError):
    kind = "not_found"


class MissingCredentialsError(CrawlError):
    kind = "missing_credentials"


class ExternalError(CrawlError):
    """A remote service failed after its retry budget was spent."""

    kind = "external"


class PersistenceError(CrawlError):
    kind = "persistence"


class AiRequestError(CrawlError):
    kind = "ai_request"


class InvalidLinkedUrlError(CrawlError):
    kind = "invalid_linked_url"
