import logging
from datetime import datetime, timedelta, UTC
from typing import Callable, Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.errors import Unauthenticated

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str):
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    """
    if isinstance(password, str):
        b = password.encode("utf-8")
        if len(b) > 72:
            # make the failure explicit and consistent
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenCodec:
    """Issues and verifies signed session tokens (JWT).

    A token carries the user id in `sub` and an integer unix `exp`. Nothing is
    stored server side, so a token stays valid until it expires. A check made
    exactly at `exp` still passes; any later check fails.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_in: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = expires_in if expires_in is not None else timedelta(hours=1)
        self.clock = clock

    def issue(self, user_id: str) -> str:
        expire = self.clock() + self.expires_in
        claims = {"sub": str(user_id), "exp": int(expire.timestamp())}
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Return the user id embedded in `token` or raise Unauthenticated."""
        if not token:
            raise Unauthenticated("Missing token")
        try:
            # expiry is checked below against our own clock
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            logger.warning("Rejected token: bad signature or malformed")
            raise Unauthenticated("Invalid token")

        user_id = payload.get("sub")
        exp = payload.get("exp")
        if not user_id or not isinstance(user_id, str):
            raise Unauthenticated("Invalid token: missing user")
        if not isinstance(exp, int) or isinstance(exp, bool):
            raise Unauthenticated("Invalid token: missing expiry")
        if self.clock().timestamp() > exp:
            logger.info("Rejected expired token for user %s", user_id)
            raise Unauthenticated("Token has expired")
        return user_id


def create_token(user_id: str) -> str:
    """Issue a token using the configured secret and validity window.

    Settings are read at call time so tests (and runtime overrides) that modify
    app.config.ACCESS_TOKEN_EXPIRE_MINUTES take effect immediately.
    """
    return get_token_codec().issue(user_id)


def get_token_codec() -> TokenCodec:
    import app.config as _cfg
    return TokenCodec(
        _cfg.SECRET_KEY,
        _cfg.ALGORITHM,
        timedelta(minutes=_cfg.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
