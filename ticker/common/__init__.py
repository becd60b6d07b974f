"""
Common utilities and helpers for the ticker package.
"""

from ticker.common.error_handler import (
    safe_execute,
    retry_on_failure,
)

__all__ = [
    'safe_execute',
    'retry_on_failure',
]
