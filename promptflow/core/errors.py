# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for promptflow.

All exceptions inherit from PromptFlowError for consistent error handling.
"""

from typing import Optional


class PromptFlowError(Exception):
    """Base exception for all promptflow errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize promptflow error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for a transport layer response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(PromptFlowError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str, details: Optional[dict] = None):
        """
        Initialize not found error.

        Args:
            resource: Type of resource (e.g., "Prompt", "Workflow")
            identifier: Resource identifier
            details: Additional error details
        """
        message = f"{resource} '{identifier}' not found"
        super().__init__(message, details=details)
        self.resource = resource
        self.identifier = identifier


class ValidationError(PromptFlowError):
    """Validation failed."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize validation error.

        Args:
            message: Validation error message
            field: Field that failed validation
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.field = field


class ConfigurationError(PromptFlowError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize configuration error.

        Args:
            message: Configuration error message
            config_file: Configuration file path
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.config_file = config_file


class ExecutionError(PromptFlowError):
    """Execution error."""

    def __init__(self, message: str, execution_id: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize execution error.

        Args:
            message: Execution error message
            execution_id: Chain or workflow identifier of the run
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.execution_id = execution_id


# Error Message Utilities

def sanitize_error_for_user(error: Exception, include_type: bool = False) -> str:
    """
    Sanitize error messages before they are stored on a result.
    Removes absolute library paths and caps the length.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        User-friendly error message
    """
    if isinstance(error, PromptFlowError):
        error_msg = error.message.strip()
    else:
        error_msg = str(error).strip() or error.__class__.__name__

    # Remove common sensitive paths
    error_msg = error_msg.replace("/Volumes/", "")
    error_msg = error_msg.replace("/home/", "")

    # Limit message length
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
