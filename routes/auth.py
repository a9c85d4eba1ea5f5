from fastapi import APIRouter, Depends, Request
from models.auth import LoginRequest, LoginResponse, Identity
from core.access import Policy
from core.auth import require
from core.tokens import TokenService, get_token_service
from database import get_db
from controllers import auth_controller
from controllers.audit_controller import log_audit, get_client_ip as _ip, get_user_agent as _ua

router = APIRouter(prefix="/auth", tags=["auth"])


async def _audit_login(db, result: LoginResponse, request: Request):
    actor = Identity(user_id=result.user_id, email=result.email, role=result.role)
    await log_audit(db, actor, "LOGIN", "auth", "session", f"Logged in as {result.role}", ip_address=_ip(request), user_agent=_ua(request))


@router.post("/admin/login", response_model=LoginResponse)
async def admin_login(credentials: LoginRequest, request: Request, db=Depends(get_db), token_service: TokenService = Depends(get_token_service)):
    result = await auth_controller.admin_login(db, token_service, credentials)
    await _audit_login(db, result, request)
    return result


@router.post("/user/login", response_model=LoginResponse)
async def user_login(credentials: LoginRequest, request: Request, db=Depends(get_db), token_service: TokenService = Depends(get_token_service)):
    result = await auth_controller.user_login(db, token_service, credentials)
    await _audit_login(db, result, request)
    return result


@router.post("/supervisor/login", response_model=LoginResponse)
async def supervisor_login(credentials: LoginRequest, request: Request, db=Depends(get_db), token_service: TokenService = Depends(get_token_service)):
    result = await auth_controller.supervisor_login(db, token_service, credentials)
    await _audit_login(db, result, request)
    return result


@router.get("/me")
async def get_me(current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    return await auth_controller.get_me(current_user)
