from fastapi import HTTPException, Depends, Request
from passlib.context import CryptContext

from core.access import Allow, Policy, authorize
from core.tokens import TokenService, get_token_service
from database import get_db
from models.auth import Identity

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised or malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def require(policy: Policy):
    """Route dependency enforcing `policy`; returns the caller's Identity."""
    async def policy_checker(
        request: Request,
        db=Depends(get_db),
        token_service: TokenService = Depends(get_token_service),
    ) -> Identity:
        decision = await authorize(policy, request.headers.get("authorization"), db, token_service)
        if not isinstance(decision, Allow):
            raise HTTPException(status_code=decision.status_code, detail=decision.message)
        request.state.user = decision.identity
        return decision.identity
    return policy_checker


def require_user_id(identity: Identity) -> str:
    if not identity.user_id:
        raise HTTPException(status_code=401, detail="User authentication required")
    return identity.user_id
