"""Error taxonomy for the memory engine."""


class MemoryEngineError(Exception):
    """Base memory engine error."""


class ExtractionFailure(MemoryEngineError):
    """Primary extraction unavailable or returned an unusable payload.

    Recovered inside the extractor by falling back to rule-based extraction.
    """


class StoreUnavailable(MemoryEngineError):
    """Durable store could not be read or written."""


class MalformedStoredRecord(MemoryEngineError):
    """A persisted record could not be decoded."""
