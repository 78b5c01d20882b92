"""Exception types raised by the scraper.

ConfigurationError and ConversionError are raised synchronously, before any
request is made. FetchError ends a pagination run. NotFoundError means a
selector matched nothing, so no partial record is produced.
"""


class ScrapeError(Exception):
    """Base class for all scraper errors."""


class ConfigurationError(ScrapeError, ValueError):
    """Conflicting or forbidden options were passed."""


class ConversionError(ScrapeError, TypeError):
    """A markup fragment was not a document, a node or a string."""


class NotFoundError(ScrapeError, LookupError):
    """A selector or required attribute was missing from the markup."""


class FetchError(ScrapeError, RuntimeError):
    """A request to the source failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(FetchError):
    pass


class PageNotFoundError(FetchError):
    pass
