"""
Trade Lifecycle - Execution Tokens.

Random single-use tokens linking a pre-trade plan to its
execution submission. Comparison runs in constant time.
"""

import hmac
import secrets
from typing import Optional


TOKEN_BYTES = 32


def issue_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def tokens_match(expected: Optional[str], provided: Optional[str]) -> bool:
    if not expected or not provided:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
