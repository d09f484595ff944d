"""
Custom exceptions for the bangumi-db ETL pipeline with structured error context.

Field-level problems (unparseable dates, catalog misses) never raise; they
degrade to ``None`` inside the transformers. The exceptions below cover the
failures that abort a run: source access, schema validation of whole items,
and sink writes.

Exception Hierarchy:
    ETLException (base)
    ├── ExtractionError
    │   ├── DatasetExtractionError
    │   │   ├── NetworkError (retryable)
    │   │   ├── RateLimitError (retryable)
    │   │   └── ResourceNotFoundError
    │   └── DatasetNotFoundError
    ├── TransformationError
    │   ├── NormalizationError
    │   └── DataFormatError
    ├── LoadError
    │   ├── DatabaseError
    │   └── UpsertError
    ├── ProvenanceError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.
    
    Attributes:
        message: Human-readable error message
        context: Additional context information (source, table, item index, etc.)
        original_exception: The original exception that was caught (if any)
    """
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)
        
        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()
        
        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception
    
    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"
        
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"
        
        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"
        
        return base_msg
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(ETLException):
    """
    Mixin for errors that should trigger retry logic.
    
    Use this for transient errors like:
    - Network timeouts
    - Rate limiting (HTTP 429)
    - Service unavailable (HTTP 5xx)
    """
    pass


class NonRetryableError(ETLException):
    """
    Mixin for errors that should NOT trigger retry logic.
    
    Use this for permanent errors like:
    - Missing dataset files
    - Malformed dataset documents
    - Resource not found (HTTP 404)
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for source dataset access failures."""
    pass


class DatasetExtractionError(ExtractionError):
    """
    Exception raised when downloading the dataset package fails.
    
    Context should include:
        - url: The URL that failed
        - status_code: HTTP status code (if applicable)
        - retry_count: Number of retries attempted
    """
    pass


class NetworkError(RetryableError, DatasetExtractionError):
    """Network-related errors that should be retried."""
    pass


class RateLimitError(RetryableError, DatasetExtractionError):
    """Rate limiting errors (HTTP 429) that should be retried with backoff."""
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after  # Seconds to wait before retry
        if retry_after:
            self.context["retry_after"] = retry_after


class ResourceNotFoundError(NonRetryableError, DatasetExtractionError):
    """Resource not found errors (HTTP 404), e.g. an unpublished version."""
    pass


class DatasetNotFoundError(NonRetryableError, ExtractionError):
    """
    Exception raised when a local dataset file cannot be read.
    
    Context should include:
        - file_path: Path that was read
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class NormalizationError(TransformationError):
    """
    Exception raised when a source item cannot be normalized at all.
    
    Context should include:
        - item_index: Position of the item in the source collection
        - title: Item title (if available)
        - field_errors: Field-level validation errors
    """
    pass


class DataFormatError(NonRetryableError, TransformationError):
    """Malformed dataset document or package descriptor."""
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class DatabaseError(LoadError):
    """
    Exception raised when database operations fail.
    
    Context should include:
        - operation: Type of database operation (INSERT, DELETE, SELECT)
        - table_name: Name of the table
    """
    pass


class UpsertError(LoadError):
    """
    Exception raised when an upsert into a keyed table fails.
    
    Context should include:
        - table_name: Target table (site_meta, meta)
        - conflict_fields: Key columns of the conflict target
    """
    pass


# ============================================================================
# Provenance Errors
# ============================================================================

class ProvenanceError(ETLException):
    """
    Exception raised when provenance metadata cannot be computed or written.
    
    Context should include:
        - dataset_version: Version being recorded
        - key: Metadata key that failed (if applicable)
    """
    pass
