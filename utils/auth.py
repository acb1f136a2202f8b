"""
Shared Password Check

The workshop app is protected by a single shared password.
"""

import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def check_password(candidate: Optional[str], expected: Optional[str]) -> bool:
    """
    Compare a submitted password with the configured one in constant time.

    Returns False when either value is empty, so an unset password never
    grants access.
    """
    if not candidate or not expected:
        return False
    ok = hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
    if not ok:
        logger.warning("Rejected login attempt with wrong password")
    return ok
