"""
Owning account resolution.
"""

import logging
import pwd

from ..validation import AccountResolutionError

logger = logging.getLogger(__name__)


def resolve_account(uid: int) -> str:
    """Return the user name owning ``uid``.

    Raises:
        AccountResolutionError: If the uid has no entry in the user database.
    """
    try:
        return pwd.getpwuid(uid).pw_name
    except (KeyError, OverflowError, TypeError) as e:
        raise AccountResolutionError(f"user lookup failed for uid {uid}: {e}", uid=uid) from e
