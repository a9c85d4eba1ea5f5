from datetime import datetime, timezone, timedelta
from typing import Optional
import re
import jwt

from config import JWT_ALGORITHM, get_jwt_secret, get_jwt_expiry
from core.exceptions import ConfigurationError, InvalidRoleError
from models.auth import TokenPayload, UserRole

_EXPIRY_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}
_EXPIRY_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")


def parse_expiry(value: str) -> timedelta:
    """Parse "24h" / "30m" / "7d" / "45s" / "3600" into a timedelta."""
    match = _EXPIRY_RE.match(str(value))
    if not match:
        raise ConfigurationError(f"Invalid JWT_EXPIRY value: '{value}'")
    amount, unit = match.groups()
    if int(amount) == 0:
        raise ConfigurationError(f"JWT_EXPIRY must be greater than zero: '{value}'")
    return timedelta(seconds=int(amount) * _EXPIRY_UNITS[unit])


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header, else None."""
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) != 2 or parts[0] != "Bearer":
        return None
    return parts[1]


class TokenService:
    """Issues and verifies signed role-bearing tokens."""

    def __init__(self, secret: str, expires_in: timedelta = timedelta(hours=24), algorithm: str = JWT_ALGORITHM):
        self.secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm

    @classmethod
    def from_config(cls) -> "TokenService":
        return cls(get_jwt_secret(), parse_expiry(get_jwt_expiry()))

    def _require_secret(self) -> str:
        if not self.secret:
            raise ConfigurationError("JWT_SECRET is not defined in environment variables")
        return self.secret

    def _encode(self, email: str, role: str) -> str:
        secret = self._require_secret()
        expire = datetime.now(timezone.utc) + self.expires_in
        return jwt.encode({"email": email, "role": role, "exp": expire}, secret, algorithm=self.algorithm)

    def issue_admin_token(self, email: str) -> str:
        return self._encode(email, UserRole.ADMIN)

    def issue_token(self, email: str, role: str) -> str:
        # Admin tokens only come from issue_admin_token.
        if role not in (UserRole.USER, UserRole.SUPERVISOR):
            raise InvalidRoleError()
        return self._encode(email, role)

    def verify(self, token: str) -> Optional[TokenPayload]:
        secret = self._require_secret()
        try:
            decoded = jwt.decode(token, secret, algorithms=[self.algorithm], options={"require": ["exp"]})
        except jwt.PyJWTError:
            return None
        email = decoded.get("email")
        role = decoded.get("role")
        if not isinstance(email, str) or not isinstance(role, str):
            return None
        return TokenPayload(email=email, role=role)


def get_token_service() -> TokenService:
    """FastAPI dependency; reads configuration on every call."""
    return TokenService.from_config()
