"""
Error taxonomy for the upload pipeline.

Every error carries a stable ``kind`` string. The API layer maps kinds to
HTTP status codes and the upload orchestrator reports the kind of each
failed file in its batch summary.
"""


class UploadPipelineError(Exception):
    """Base class for all signing/upload errors."""

    kind = "UploadPipelineError"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.kind

    def __str__(self) -> str:
        return self.message


class ConfigurationError(UploadPipelineError):
    """Server credentials are missing or invalid. Not retryable."""

    kind = "ConfigurationError"
    status_code = 500


class ValidationError(UploadPipelineError):
    """Malformed caller input (missing key, bad expiry, ...)."""

    kind = "ValidationError"
    status_code = 400


class AuthorizationError(UploadPipelineError):
    """Caller identity is valid but not allowed to use the signer."""

    kind = "AuthorizationError"
    status_code = 403


class UpstreamError(UploadPipelineError):
    """Object store, signing service or metadata store call failed."""

    kind = "UpstreamError"
    status_code = 502


class UnsupportedTypeError(UploadPipelineError):
    """File is neither an image nor a video."""

    kind = "UnsupportedType"
    status_code = 415


class TransferError(UploadPipelineError):
    """The object store answered the PUT with a non-2xx status."""

    kind = "TransferError"
    status_code = 502

    def __init__(self, message: str = "", status: int = None):
        super().__init__(message)
        self.status = status
