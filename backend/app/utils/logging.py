"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- gallery_id
- object_key
- batch_id
- user_id
- duration_ms

Secrets (storage keys, auth tokens) are never passed to these helpers.

Usage:
    from app.utils.logging import configure_logging, log_upload_signed

    configure_logging('gallery-signer', 'INFO')
    log_upload_signed(logger, object_key='galleries/g1/...', user_id='uid')
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (gallery-signer or gallery-uploader)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        # Create JSON formatter
        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Create console handler (for docker logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        # Configure root logger
        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    gallery_id: Optional[str] = None,
    object_key: Optional[str] = None,
    batch_id: Optional[str] = None,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        gallery_id: Optional gallery ID
        object_key: Optional object key
        batch_id: Optional upload batch ID
        user_id: Optional caller ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if gallery_id:
        extra["gallery_id"] = gallery_id
    if object_key:
        extra["object_key"] = object_key
    if batch_id:
        extra["batch_id"] = batch_id
    if user_id:
        extra["user_id"] = user_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Signing service events

def log_upload_signed(
    logger: logging.Logger,
    object_key: str,
    user_id: Optional[str] = None,
    content_type: Optional[str] = None,
    **kwargs
):
    """Log an upload grant being issued."""
    extra = _build_log_extra(
        event="upload_signed",
        object_key=object_key,
        user_id=user_id,
        **kwargs
    )
    if content_type:
        extra["content_type"] = content_type

    logger.info(f"Upload URL signed: {object_key}", extra=extra)


def log_object_deleted(
    logger: logging.Logger,
    object_key: str,
    user_id: Optional[str] = None,
    **kwargs
):
    """Log a server-side object delete."""
    extra = _build_log_extra(
        event="object_deleted",
        object_key=object_key,
        user_id=user_id,
        **kwargs
    )
    logger.info(f"Object deleted: {object_key}", extra=extra)


# Upload batch events

def log_batch_started(
    logger: logging.Logger,
    batch_id: str,
    gallery_id: str,
    total: int,
    concurrency: int,
    **kwargs
):
    """Log the start of an upload batch."""
    extra = _build_log_extra(
        event="batch_started",
        batch_id=batch_id,
        gallery_id=gallery_id,
        total=total,
        concurrency=concurrency,
        **kwargs
    )
    logger.info(f"Upload batch started: {total} files -> {gallery_id}", extra=extra)


def log_batch_completed(
    logger: logging.Logger,
    batch_id: str,
    gallery_id: str,
    total: int,
    succeeded: int,
    failed: int,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log the summary of an upload batch."""
    extra = _build_log_extra(
        event="batch_completed",
        batch_id=batch_id,
        gallery_id=gallery_id,
        duration_ms=duration_ms,
        total=total,
        succeeded=succeeded,
        failed=failed,
        **kwargs
    )
    logger.info(
        f"Upload batch completed: {succeeded}/{total} succeeded, {failed} failed",
        extra=extra
    )


def log_task_failed(
    logger: logging.Logger,
    batch_id: str,
    gallery_id: str,
    filename: str,
    error_kind: str,
    error: Optional[str] = None,
    include_traceback: bool = False,
    **kwargs
):
    """
    Log a single file failing inside a batch.

    Args:
        logger: Logger instance
        batch_id: Batch ID (required)
        gallery_id: Gallery ID (required)
        filename: Original filename (required)
        error_kind: Error kind from the error taxonomy (required)
        error: Error message
        include_traceback: Whether to include the active stack trace
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="upload_task_failed",
        batch_id=batch_id,
        gallery_id=gallery_id,
        file_name=filename,  # "filename" is a reserved LogRecord attribute
        error_kind=error_kind,
        **kwargs
    )
    if error:
        extra["error"] = str(error)

    message = f"Failed to upload {filename}: {error_kind}"
    if error:
        message += f" - {error}"

    if include_traceback:
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            logger.error(message, extra=extra, exc_info=exc_info)
            return
    logger.error(message, extra=extra)


def log_orphan_candidate(
    logger: logging.Logger,
    object_key: str,
    gallery_id: str,
    reason: str,
    batch_id: Optional[str] = None,
    **kwargs
):
    """
    Log an object that may exist in storage without a metadata record.

    These entries feed out-of-band reconciliation.
    """
    extra = _build_log_extra(
        event="orphan_candidate",
        object_key=object_key,
        gallery_id=gallery_id,
        batch_id=batch_id,
        reason=reason,
        **kwargs
    )
    logger.warning(f"Orphan candidate: {object_key} ({reason})", extra=extra)



def log_orphan_record(
    logger: logging.Logger,
    media_id: str,
    object_key: str,
    gallery_id: str,
    reason: str,
    batch_id: Optional[str] = None,
    **kwargs
):
    """
    Log a media record that could not be rolled back.

    The object it points at is kept so the record stays valid; the gallery
    counter is missing one increment until reconciliation.
    """
    extra = _build_log_extra(
        event="orphan_record",
        object_key=object_key,
        gallery_id=gallery_id,
        batch_id=batch_id,
        media_id=media_id,
        reason=reason,
        **kwargs
    )
    logger.error(f"Orphan record: {media_id} -> {object_key} ({reason})", extra=extra)


# Convenience alias
def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
