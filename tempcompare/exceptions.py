"""Error taxonomy shared by the ingestion pipeline, query engine and HTTP layer."""


class TempCompareError(Exception):
    """Base class for all service errors."""


class TransportError(TempCompareError):
    """Upstream provider unreachable, timed out or answered with a non-2xx status."""


class ParseError(TransportError):
    """Upstream answered, but the payload lacks the expected hourly arrays."""


class StorageError(TempCompareError):
    """A database read or write failed."""


class CityNotFoundError(TempCompareError):
    def __init__(self, city: str) -> None:
        super().__init__(f"City not found: {city}")
        self.city = city


class IngestionInProgressError(TempCompareError):
    """Another ingestion run holds the guard."""
