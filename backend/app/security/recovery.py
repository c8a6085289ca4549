# backend/app/security/recovery.py
"""
Two-factor recovery codes.

A batch of one-time backup codes is issued when 2FA is set up. Each code
is 8 uppercase hex characters (4 random bytes). Using a code removes it
from the user's list for good.

Codes are stored per user as a JSON array; no uniqueness is enforced
across users since a code is only ever checked against its owner's list.
"""
import json
import secrets
from typing import List, NamedTuple, Optional

from backend.app.core.config import settings

RECOVERY_CODE_BYTES = 4


class RecoveryCheck(NamedTuple):
    found: bool
    remaining: List[str]


def generate_recovery_codes(count: Optional[int] = None) -> List[str]:
    if count is None:
        count = settings.RECOVERY_CODE_COUNT
    return [secrets.token_hex(RECOVERY_CODE_BYTES).upper() for _ in range(count)]


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    """
    if len(a) != len(b):
        # Still do the comparison to keep timing uniform
        secrets.compare_digest(a, a)
        return False
    return secrets.compare_digest(a, b)


def consume_recovery_code(codes: List[str], submitted: str) -> RecoveryCheck:
    """
    Look for `submitted` in `codes`.

    On a hit, `remaining` is a new list without that single entry.
    On a miss, `remaining` is the original list, unchanged.
    """
    if not submitted:
        return RecoveryCheck(False, codes)

    candidate = submitted.strip()
    for index, code in enumerate(codes):
        if constant_time_compare(code, candidate):
            return RecoveryCheck(True, codes[:index] + codes[index + 1:])
    return RecoveryCheck(False, codes)


def dump_recovery_codes(codes: Optional[List[str]]) -> Optional[str]:
    if codes is None:
        return None
    return json.dumps(list(codes))


def load_recovery_codes(raw: Optional[str]) -> List[str]:
    """Deserialize stored codes; anything unreadable counts as no codes."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(data, list):
        return []
    return [str(code) for code in data]
