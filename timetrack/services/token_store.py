import logging
import secrets
import threading
from typing import Dict, Optional

from timetrack.entities import Employee

logger = logging.getLogger(__name__)


class TokenStore:
    """
    In-memory map of opaque session tokens to the employee that logged in.

    Tokens live until revoked or the process exits; nothing is persisted and
    there is no expiry. All access goes through one lock so callers never need
    their own.
    """

    TOKEN_BYTES = 32

    def __init__(self):
        self._tokens: Dict[str, Employee] = {}
        self._lock = threading.Lock()

    def issue(self, employee: Employee) -> str:
        with self._lock:
            token = secrets.token_urlsafe(self.TOKEN_BYTES)
            while token in self._tokens:
                token = secrets.token_urlsafe(self.TOKEN_BYTES)
            self._tokens[token] = employee
        logger.debug(f"Issued token for {employee.user_name}")
        return token

    def resolve(self, token: Optional[str]) -> Optional[Employee]:
        if not token:
            return None
        with self._lock:
            return self._tokens.get(token)

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._tokens.pop(token, None) is not None

    def revoke_all(self, emp_number: int) -> int:
        """Drop every session of one employee; returns how many were removed."""
        with self._lock:
            stale = [t for t, e in self._tokens.items() if e.emp_number == emp_number]
            for token in stale:
                del self._tokens[token]
        if stale:
            logger.info(f"Revoked {len(stale)} token(s) for employee #{emp_number}")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
