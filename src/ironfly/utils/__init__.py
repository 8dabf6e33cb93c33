"""
Utilities Package

Request signing and the retry executor shared by every gateway call.
"""

from ironfly.utils.retry import RetryExecutor, RetryPolicy, classify_error, execute_with_retry
from ironfly.utils.signing import SignedRequest, canonical_query_string, sign, sign_params

__all__ = [
    "RetryExecutor",
    "RetryPolicy",
    "classify_error",
    "execute_with_retry",
    "SignedRequest",
    "canonical_query_string",
    "sign",
    "sign_params",
]
