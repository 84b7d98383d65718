"""
Administrator tokens.

There is a single administrator identified by a shared password. A correct
password is exchanged for a signed HS256 token which the publish endpoint
accepts as a Bearer credential until it expires.
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"


class AdminTokenService:
    """Issue and check administrator tokens"""

    def __init__(
        self,
        admin_password: str,
        secret: Optional[str] = None,
        ttl: timedelta = timedelta(days=7),
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.admin_password = admin_password or ""
        self.secret = secret or self.admin_password
        self.ttl = ttl
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def configured(self) -> bool:
        return bool(self.admin_password and self.secret)

    def login(self, password: Optional[str]) -> Optional[str]:
        """Return a signed token for the right password, else None"""
        if not self.configured:
            logger.warning("Login attempted but no administrator password is configured")
            return None

        supplied = (password or "").encode("utf-8")
        if not hmac.compare_digest(supplied, self.admin_password.encode("utf-8")):
            logger.warning("Rejected login with invalid password")
            return None

        return self.issue()

    def issue(self) -> str:
        now = self.clock()
        payload = {
            "admin": True,
            "role": ADMIN_ROLE,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        token = jwt.encode(payload, self.secret, algorithm=ALGORITHM)
        logger.info(f"Issued administrator token valid until {now + self.ttl:%Y-%m-%d %H:%M:%S %Z}")
        return token

    def verify(self, token: Optional[str]) -> bool:
        """True for an unexpired admin token with a valid signature; never raises"""
        if not token or not self.secret:
            return False

        try:
            # Expiry is checked against self.clock below so tests can move time
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp"]}
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected administrator token: {e}")
            return False

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or self.clock().timestamp() >= exp:
            logger.warning("Rejected expired administrator token")
            return False

        if claims.get("admin") is not True and claims.get("role") != ADMIN_ROLE:
            logger.warning("Rejected token without administrator claim")
            return False

        return True
