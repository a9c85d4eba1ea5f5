import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Union

from core.identity import DenialReason, Lookup, resolve_identity
from core.tokens import TokenService, extract_bearer_token
from models.auth import Identity, UserRole

logger = logging.getLogger(__name__)


class Policy(str, Enum):
    ADMIN_ONLY = "admin_only"
    SUPERVISOR_ONLY = "supervisor_only"
    CUSTOMER_ONLY = "customer_only"
    ADMIN_OR_SUPERVISOR = "admin_or_supervisor"
    CUSTOMER_OR_SUPERVISOR = "customer_or_supervisor"
    ANY_AUTHENTICATED = "any_authenticated"


@dataclass(frozen=True)
class Allow:
    identity: Identity


@dataclass(frozen=True)
class Deny:
    status_code: int
    message: str


Decision = Union[Allow, Deny]


@dataclass(frozen=True)
class PolicyRule:
    lookups: Mapping[str, Lookup]
    role_denied: str
    not_found: Mapping[DenialReason, str]
    # Role-specific 403 messages that take precedence over role_denied.
    role_denied_by_role: Mapping[str, str] = field(default_factory=dict)
    missing_token: str = "Authorization token is required. Please provide a valid Bearer token."
    invalid_token: str = "Invalid or expired token. Please login again."
    failure: str = "Authentication failed. Please login again."

    def denial_for_role(self, role: str) -> str:
        return self.role_denied_by_role.get(role, self.role_denied)


_USER_NOT_FOUND_RELOGIN = "User not found. Please login again."
_SHORT = dict(
    missing_token="Authorization token is required.",
    invalid_token="Invalid or expired token.",
    failure="Authentication failed.",
)

# Store selection differs between policies on purpose: SUPERVISOR_ONLY and
# ADMIN_OR_SUPERVISOR resolve supervisors against `users`, the others against
# `supervisors`; only ADMIN_ONLY requires a persisted admin row.
POLICY_RULES: Mapping[Policy, PolicyRule] = {
    Policy.ADMIN_ONLY: PolicyRule(
        lookups={UserRole.ADMIN: Lookup.USERS},
        role_denied="Access denied. Admin privileges required.",
        not_found={DenialReason.ADMIN_NOT_FOUND: "Admin user not found in database."},
    ),
    Policy.SUPERVISOR_ONLY: PolicyRule(
        lookups={UserRole.SUPERVISOR: Lookup.USERS},
        role_denied="Access denied. Supervisor privileges required. Only supervisors can perform this action.",
        not_found={DenialReason.SUPERVISOR_NOT_FOUND: _USER_NOT_FOUND_RELOGIN},
    ),
    Policy.CUSTOMER_ONLY: PolicyRule(
        lookups={UserRole.USER: Lookup.USERS},
        role_denied="Access denied. Customer privileges required. Only customers can perform this action.",
        not_found={DenialReason.USER_NOT_FOUND: _USER_NOT_FOUND_RELOGIN},
    ),
    Policy.ADMIN_OR_SUPERVISOR: PolicyRule(
        lookups={UserRole.ADMIN: Lookup.NONE, UserRole.SUPERVISOR: Lookup.USERS},
        role_denied="Access denied. Admin or supervisor privileges required. Customers cannot perform this action.",
        not_found={DenialReason.SUPERVISOR_NOT_FOUND: _USER_NOT_FOUND_RELOGIN},
    ),
    Policy.CUSTOMER_OR_SUPERVISOR: PolicyRule(
        lookups={UserRole.USER: Lookup.USERS, UserRole.SUPERVISOR: Lookup.SUPERVISORS},
        role_denied="Access denied. Role not authorized.",
        role_denied_by_role={UserRole.ADMIN: "Admins are not allowed to perform this action."},
        not_found={
            DenialReason.USER_NOT_FOUND: "User not found.",
            DenialReason.SUPERVISOR_NOT_FOUND: "Supervisor not found.",
        },
        **_SHORT,
    ),
    Policy.ANY_AUTHENTICATED: PolicyRule(
        lookups={UserRole.ADMIN: Lookup.NONE, UserRole.USER: Lookup.USERS, UserRole.SUPERVISOR: Lookup.SUPERVISORS},
        role_denied="Access denied. Role not authorized.",
        not_found={
            DenialReason.USER_NOT_FOUND: "User not found.",
            DenialReason.SUPERVISOR_NOT_FOUND: "Supervisor not found.",
        },
        **_SHORT,
    ),
}


async def authorize(policy: Policy, authorization: Optional[str], db, token_service: TokenService) -> Decision:
    """Run the shared gate pipeline for `policy` against an Authorization header value."""
    rule = POLICY_RULES[policy]
    try:
        token = extract_bearer_token(authorization)
        if not token:
            return Deny(401, rule.missing_token)

        payload = token_service.verify(token)
        if payload is None:
            return Deny(401, rule.invalid_token)

        result = await resolve_identity(db, payload, rule.lookups)
    except Exception as e:
        logger.error(f"Authorization error under policy '{policy.value}': {e}")
        return Deny(401, rule.failure)

    if result is DenialReason.ROLE_NOT_ALLOWED:
        return Deny(403, rule.denial_for_role(payload.role))
    if isinstance(result, DenialReason):
        return Deny(401, rule.not_found.get(result, rule.failure))
    return Allow(result)
