"""
Request Signing

HMAC-SHA256 signatures over the canonical form body of authenticated
exchange calls.

The canonical body is built from an ordered list of (name, value) pairs and
URL-form-encoded in insertion order. The same bytes are signed and sent, so
the pairs must never pass through an unordered mapping.

Usage:
    signed = sign_params([("symbol", "BTC-240105-42000-C"), ("timestamp", "1704412800000")], secret)
    signed.query_string  # exact body to send
    signed.signature     # value for the signature header
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
from urllib.parse import urlencode

from ironfly.core.errors import ConfigurationError


FormPairs = Sequence[tuple[str, str]]


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """
    Signed form body ready for dispatch.

    Attributes:
        params: Ordered (name, value) pairs
        query_string: Canonical form body, exactly what was signed
        signature: Hex HMAC-SHA256 of query_string
    """

    params: tuple[tuple[str, str], ...]
    query_string: str
    signature: str

    def get(self, name: str) -> Optional[str]:
        """Return the first value for name, or None."""
        for key, value in self.params:
            if key == name:
                return value
        return None


def canonical_query_string(pairs: Iterable[tuple[str, str]]) -> str:
    """URL-form-encode pairs in insertion order."""
    return urlencode(list(pairs))


def sign(message: str, secret: Optional[str]) -> str:
    """
    Compute the hex HMAC-SHA256 of message with secret.

    Args:
        message: Canonical request body
        secret: API secret key

    Returns:
        Lowercase hex digest

    Raises:
        ConfigurationError: If secret is empty or missing
    """
    if not secret:
        raise ConfigurationError("API secret key is not configured; refusing to send unsigned request")

    return hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign_params(pairs: FormPairs, secret: Optional[str]) -> SignedRequest:
    """Canonicalize pairs and sign the resulting body."""
    params = tuple((str(name), str(value)) for name, value in pairs)
    query_string = canonical_query_string(params)
    return SignedRequest(
        params=params,
        query_string=query_string,
        signature=sign(query_string, secret),
    )
