"""Error kinds raised by the correction pipeline."""


class KogrammarError(Exception):
    """Base exception for pipeline operations."""

    pass


class BackendUnreachable(KogrammarError):
    """Raised when the grammar backend cannot be reached or times out."""

    pass


class BackendRequestFailed(KogrammarError):
    """Raised when the grammar backend answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"Backend request failed: {status_code}")
        self.status_code = status_code
        self.body = body

    @property
    def retryable(self) -> bool:
        """Rate limiting and server errors are worth retrying; client errors are not."""
        return self.status_code == 429 or self.status_code >= 500


class MalformedBackendResponse(KogrammarError):
    """Raised when a backend payload is missing the fields we need."""

    pass


class NoApiKeyConfigured(KogrammarError):
    """Raised before any network call when the provider has no credentials."""

    pass


class NoModelConfigured(KogrammarError):
    """Raised before any network call when no model name is set."""

    pass


class AIDisabled(KogrammarError):
    """Raised when AI analysis is requested while the feature is switched off."""

    pass


class AnalysisInProgress(KogrammarError):
    """Raised when a second analysis run starts on a busy orchestrator."""

    pass


class AIResponseParseFailure(KogrammarError):
    """Raised when a model response survives none of the JSON recovery steps."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class AIBatchFailure(KogrammarError):
    """Raised (and caught by the orchestrator) when a single batch fails."""

    def __init__(self, batch_number: int, cause: BaseException):
        super().__init__(f"Batch {batch_number} failed: {cause}")
        self.batch_number = batch_number
        self.cause = cause


class InvalidCorrectionIndex(KogrammarError, IndexError):
    """Raised when a caller passes an out-of-range correction index."""

    def __init__(self, index: int, size: int):
        super().__init__(f"Invalid correction index: {index} (have {size})")
        self.index = index
        self.size = size
