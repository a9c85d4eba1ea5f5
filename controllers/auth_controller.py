import logging

from config import get_admin_credentials
from core.auth import verify_password, get_password_hash
from core.exceptions import AppError, AuthenticationError, ConfigurationError
from core.tokens import TokenService
from models.auth import LoginRequest, LoginResponse, User, UserRole, SupervisorStatus, Identity

logger = logging.getLogger(__name__)


def _validated(credentials: LoginRequest) -> tuple:
    email = (credentials.email or "").strip()
    if not email:
        raise AppError("Email is required")
    if not credentials.password or not credentials.password.strip():
        raise AppError("Password is required")
    return email, credentials.password


async def admin_login(db, token_service: TokenService, credentials: LoginRequest) -> LoginResponse:
    """Persisted admin first; otherwise the env bootstrap credentials, which create the first admin row."""
    email, password = _validated(credentials)

    admin_doc = await db.users.find_one({"email": email, "role": UserRole.ADMIN}, {"_id": 0})
    if admin_doc:
        if not admin_doc.get("password"):
            raise AppError("Password not set for this admin. Please contact administrator.")
        if not verify_password(password, admin_doc["password"]):
            raise AuthenticationError()
        admin_id = admin_doc["id"]
    else:
        env_email, env_password = get_admin_credentials()
        if not env_email or not env_password:
            raise ConfigurationError("Admin credentials are not configured in environment variables")
        if email != env_email.strip() or password != env_password:
            raise AuthenticationError()
        admin = User(email=email, user_name="Admin", role=UserRole.ADMIN, password=get_password_hash(password))
        # Keyed on email alone: concurrent first logins insert one row, and an
        # existing non-admin account with this email is never shadowed.
        result = await db.users.update_one({"email": email}, {"$setOnInsert": admin.model_dump()}, upsert=True)
        stored = await db.users.find_one({"email": email}, {"_id": 0, "password": 0})
        if stored.get("role") != UserRole.ADMIN:
            logger.error(f"ADMIN_EMAIL {email} belongs to an existing {stored.get('role')} account")
            raise ConfigurationError("Admin email is already used by a non-admin account")
        admin_id = stored["id"]
        if result.upserted_id is not None:
            logger.info(f"Bootstrap admin record created for {email}")

    token = token_service.issue_admin_token(email)
    return LoginResponse(token=token, email=email, role=UserRole.ADMIN, user_id=admin_id)


async def user_login(db, token_service: TokenService, credentials: LoginRequest) -> LoginResponse:
    email, password = _validated(credentials)

    user = await db.users.find_one({"email": email}, {"_id": 0})
    if not user:
        raise AuthenticationError()
    if not user.get("password"):
        raise AppError("Password not set for this user. Please contact administrator.")
    if not verify_password(password, user["password"]):
        raise AuthenticationError()

    role = user.get("role")
    if role == UserRole.ADMIN:
        raise AppError("Admin users should use admin login endpoint")
    if role == UserRole.SUPERVISOR:
        raise AppError("Supervisor users should use supervisor login endpoint")
    if role != UserRole.USER:
        raise AuthenticationError("Invalid user role. This endpoint is for regular users only.")

    token = token_service.issue_token(user["email"], role)
    return LoginResponse(token=token, email=user["email"], role=role, user_id=user["id"])


async def supervisor_login(db, token_service: TokenService, credentials: LoginRequest) -> LoginResponse:
    email, password = _validated(credentials)

    record = await db.supervisors.find_one({"email": email}, {"_id": 0})
    role = UserRole.SUPERVISOR
    if not record:
        # Legacy rows: supervisors stored in `users` with role "supervisor"
        record = await db.users.find_one({"email": email}, {"_id": 0})
        if not record:
            raise AuthenticationError()
        role = record.get("role")

    if not record.get("password"):
        raise AppError("Password not set for this supervisor. Please contact administrator.")
    if not verify_password(password, record["password"]):
        raise AuthenticationError()
    if role != UserRole.SUPERVISOR:
        raise AuthenticationError("Access denied. This endpoint is for supervisors only.")
    if record.get("status", SupervisorStatus.ACTIVE) != SupervisorStatus.ACTIVE:
        raise AuthenticationError("Supervisor account is inactive. Please contact administrator.")

    token = token_service.issue_token(record["email"], UserRole.SUPERVISOR)
    return LoginResponse(
        message="Supervisor login successful",
        token=token,
        email=record["email"],
        role=UserRole.SUPERVISOR,
        user_id=record["id"],
    )


async def get_me(current_user: Identity) -> dict:
    return current_user.model_dump()
