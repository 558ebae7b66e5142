"""
otp.py - One-time password store for email login.
"""

import logging
import secrets
import time
from threading import Lock
from typing import Callable, Dict, Tuple

from .exceptions import InvalidOTPError, OTPExpiredError, OTPNotRequestedError

logger = logging.getLogger(__name__)


class OTPStore:
    """
    In-memory OTP records keyed by normalized email. Codes are single-use.
    """

    def __init__(self, ttl_seconds: int = 300, length: int = 6, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self.length = length
        self.clock = clock
        self.lock = Lock()
        self._records: Dict[str, Tuple[str, float]] = {}

    def __len__(self) -> int:
        return len(self._records)

    def _generate(self) -> str:
        low = 10 ** (self.length - 1)
        return str(low + secrets.randbelow(9 * low))

    def issue(self, email: str) -> str:
        """Create a code for the email, replacing any previous one."""
        code = self._generate()
        with self.lock:
            self._records[email] = (code, self.clock() + self.ttl_seconds)
        return code

    def verify(self, email: str, code: str) -> None:
        """
        Check a code and consume it on success.

        Raises:
            OTPNotRequestedError: no code was issued for the email.
            OTPExpiredError: the code expired; the record is dropped.
            InvalidOTPError: the code does not match.
        """
        with self.lock:
            record = self._records.get(email)
            if record is None:
                raise OTPNotRequestedError()
            expected, expires = record
            if self.clock() > expires:
                del self._records[email]
                raise OTPExpiredError()
            if not secrets.compare_digest(expected.encode(), str(code).encode()):
                raise InvalidOTPError()
            del self._records[email]

    def purge_expired(self) -> int:
        """Drop expired records and return how many were removed."""
        now = self.clock()
        with self.lock:
            expired = [email for email, (_, expires) in self._records.items() if now > expires]
            for email in expired:
                del self._records[email]
        if expired:
            logger.info("Purged %d expired OTP records", len(expired))
        return len(expired)
