# forge_engine/errors.py
"""
EffectForge - Custom Exceptions v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

User-friendly error types for EffectForge operations.
Each exception includes both a technical message (for logs) and
a user-friendly message (for API responses).
"""


class ForgeError(Exception):
    """Base exception for EffectForge errors."""

    def __init__(self, message: str, user_message: str = None, status_code: int = 500):
        super().__init__(message)
        self.user_message = user_message or message
        self.status_code = status_code


# =============================================================================
# FILE ERRORS
# =============================================================================

class FileError(ForgeError):
    """File-related errors."""
    pass


class FileTooLargeError(FileError):
    """File exceeds size limit."""

    def __init__(self, size_mb: float, limit_mb: float):
        super().__init__(
            f"File size {size_mb:.1f}MB exceeds limit {limit_mb}MB",
            f"This file is too large ({size_mb:.1f}MB). Maximum size is {limit_mb}MB.",
            413
        )
        self.size_mb = size_mb
        self.limit_mb = limit_mb


class EmptyFileError(FileError):
    """File is empty."""

    def __init__(self):
        super().__init__(
            "File is empty",
            "This file appears to be empty. Please check that you uploaded the correct file.",
            400
        )


class CorruptedFileError(FileError):
    """File is corrupted or unreadable."""

    def __init__(self, details: str = ""):
        detail_suffix = f" {details}" if details else ""
        super().__init__(
            f"File is corrupted: {details}",
            f"This file appears to be corrupted or in an unsupported format.{detail_suffix}",
            400
        )


class UnsupportedFileTypeError(FileError):
    """File type not supported."""

    def __init__(self, file_type: str, supported_types: list):
        types_str = ', '.join(supported_types[:5])
        if len(supported_types) > 5:
            types_str += ', ...'
        super().__init__(
            f"Unsupported file type: {file_type}",
            f"This file type ({file_type}) is not supported. "
            f"Supported types: {types_str}",
            415
        )
        self.file_type = file_type
        self.supported_types = supported_types


class FileNotParsedError(FileError):
    """File exists but its text is not available yet."""

    def __init__(self, file_id: str, status: str):
        super().__init__(
            f"File {file_id} not parsed (status={status})",
            "This file has not finished parsing yet. Wait for it to reach "
            "'parsed' status and try again.",
            400
        )
        self.file_id = file_id
        self.status = status


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(ForgeError):
    """Input validation failed."""

    def __init__(self, field: str, issue: str):
        super().__init__(
            f"Validation error: {field} - {issue}",
            f"Invalid input for '{field}': {issue}",
            400
        )
        self.field = field
        self.issue = issue


class MissingFieldError(ValidationError):
    """Required field is missing."""

    def __init__(self, field: str):
        super().__init__(
            field,
            f"'{field}' is required but was not provided."
        )


class OutOfRangeError(ValidationError):
    """Numeric option outside its accepted range."""

    def __init__(self, field: str, value, minimum, maximum):
        super().__init__(
            field,
            f"must be between {minimum} and {maximum} (got {value})."
        )
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class PipelineError(ForgeError):
    """A generation stage failed unexpectedly."""

    def __init__(self, stage: str, original_error: str):
        super().__init__(
            f"Pipeline stage '{stage}' failed: {original_error}",
            f"Effect generation failed during {stage}: {original_error}",
            500
        )
        self.stage = stage
        self.original_error = original_error


# =============================================================================
# RESOURCE ERRORS
# =============================================================================

class ResourceNotFoundError(ForgeError):
    """Requested resource doesn't exist."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            f"The requested {resource_type} could not be found. It may have been deleted.",
            404
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class RateLimitError(ForgeError):
    """Rate limit exceeded."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            "Rate limit exceeded",
            f"Too many requests. Please wait {retry_after} seconds and try again.",
            429
        )
        self.retry_after = retry_after


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    # Base
    "ForgeError",
    # File
    "FileError",
    "FileTooLargeError",
    "EmptyFileError",
    "CorruptedFileError",
    "UnsupportedFileTypeError",
    "FileNotParsedError",
    # Validation
    "ValidationError",
    "MissingFieldError",
    "OutOfRangeError",
    # Pipeline
    "PipelineError",
    # Resources
    "ResourceNotFoundError",
    "RateLimitError",
]
