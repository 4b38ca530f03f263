"""
Exceptions module for varanno.
Defines the error taxonomy used by the annotation retrieval engine.

Only ConfigurationError ever reaches callers; the other errors are raised
inside adapters and parsers and absorbed there.
"""

import time
import logging
import functools


class VarAnnoError(Exception):
    """Base exception class for all varanno errors."""

    def __init__(self, message="An error occurred in varanno", details=None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class BackendUnavailableError(VarAnnoError):
    """Exception raised when an index or database cannot be reached."""

    def __init__(self, message="Annotation backend unavailable", details=None):
        super().__init__(message, details)


class MalformedRecordError(VarAnnoError):
    """Exception raised for annotation rows or fields that cannot be parsed."""

    def __init__(self, message="Malformed annotation record", details=None):
        super().__init__(message, details)


class ConfigurationError(VarAnnoError):
    """Exception raised for errors related to configuration."""

    def __init__(self, message="Error with configuration", details=None):
        super().__init__(message, details)


class CacheError(VarAnnoError):
    """Exception raised for errors related to caching."""

    def __init__(self, message="Error with cache operations", details=None):
        super().__init__(message, details)


def retry_operation(max_attempts=3, retry_delay=1, retry_exceptions=(BackendUnavailableError, ConnectionError)):
    """
    Decorator for retrying operations that might fail transiently.

    Args:
        max_attempts: Maximum number of attempts
        retry_delay: Delay between attempts in seconds
        retry_exceptions: Tuple of exceptions to catch and retry

    Returns:
        Decorator function
    """
    log = logging.getLogger("varanno")

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempts = 0
            while attempts < max_attempts:
                try:
                    return func(*args, **kwargs)
                except retry_exceptions as e:
                    attempts += 1
                    if attempts == max_attempts:
                        log.error(f"Operation failed after {max_attempts} attempts: {e}")
                        raise
                    log.warning(f"Operation failed, retrying ({attempts}/{max_attempts}): {e}")
                    time.sleep(retry_delay)
        return wrapper
    return decorator
