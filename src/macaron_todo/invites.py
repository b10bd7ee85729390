# src/macaron_todo/invites.py

"""
Single-use invite codes.

Unrelated to tasks; it only shares the key-value persistence (key "todo_used_invites").
Codes look like "INV" + 8 characters from A-Z0-9.
"""

from __future__ import annotations

import json
import logging
import secrets

from .core.ports import KeyValueStore
from .storage.kv_store import PersistenceError

logger = logging.getLogger(__name__)

USED_INVITES_KEY = "todo_used_invites"
INVITE_PREFIX = "INV"
INVITE_CODE_LENGTH = 11
_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def generate_invite_code() -> str:
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(INVITE_CODE_LENGTH - len(INVITE_PREFIX)))
    return INVITE_PREFIX + suffix


def is_valid_invite_code(code: object) -> bool:
    return isinstance(code, str) and code.startswith(INVITE_PREFIX) and len(code) == INVITE_CODE_LENGTH


class InviteLedger:
    """Device-local list of consumed codes, read and written whole on every call."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def used_codes(self) -> list[str]:
        raw = self._kv.get(USED_INVITES_KEY)
        if not raw:
            return []
        try:
            val = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"corrupt {USED_INVITES_KEY} payload: {e}") from e
        if not isinstance(val, list):
            raise PersistenceError(f"{USED_INVITES_KEY} payload is not a list")
        return [str(c) for c in val]

    def is_used(self, code: str) -> bool:
        """Malformed codes count as used."""
        if not is_valid_invite_code(code):
            return True
        return code in self.used_codes()

    def mark_used(self, code: str) -> bool:
        """Record a code. Returns False for malformed or already-used codes."""
        if not is_valid_invite_code(code):
            return False
        used = self.used_codes()
        if code in used:
            return False
        used.append(code)
        self._kv.set(USED_INVITES_KEY, json.dumps(used))
        logger.info("Invite code consumed total_used=%d", len(used))
        return True

    def usage_count(self, code: str) -> int:
        return sum(1 for c in self.used_codes() if c == code)
