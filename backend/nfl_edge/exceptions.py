"""Pipeline exception types."""


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(PipelineError):
    """Required configuration or credential is missing."""


class FetchError(PipelineError):
    """An external data source could not be reached after retries."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status_code = status_code


class StorageError(PipelineError):
    """A read or write against the pipeline store failed."""
