"""
Resolve a verified token payload to a storage-backed caller identity.

The token alone does not prove the subject still exists, so every role that
a policy maps to a store is looked up by email. Which store is consulted (and
whether an admin is looked up at all) is decided per policy; see
core/access.py for the table.
"""
from enum import Enum
from typing import Mapping, Union

from models.auth import Identity, TokenPayload, UserRole


class Lookup(str, Enum):
    NONE = "none"  # email-only identity, no database read
    USERS = "users"
    SUPERVISORS = "supervisors"


class DenialReason(str, Enum):
    ROLE_NOT_ALLOWED = "role_not_allowed"
    ADMIN_NOT_FOUND = "admin_not_found"
    SUPERVISOR_NOT_FOUND = "supervisor_not_found"
    USER_NOT_FOUND = "user_not_found"


_NOT_FOUND = {
    UserRole.ADMIN: DenialReason.ADMIN_NOT_FOUND,
    UserRole.SUPERVISOR: DenialReason.SUPERVISOR_NOT_FOUND,
    UserRole.USER: DenialReason.USER_NOT_FOUND,
}


async def resolve_identity(db, payload: TokenPayload, lookups: Mapping[str, Lookup]) -> Union[Identity, DenialReason]:
    """Return the caller's Identity, or the reason it cannot be resolved.

    `lookups` maps each allowed role to the store it is resolved against;
    roles missing from it are not allowed.
    """
    lookup = lookups.get(payload.role)
    if lookup is None:
        return DenialReason.ROLE_NOT_ALLOWED

    if lookup == Lookup.NONE:
        return Identity(email=payload.email, role=payload.role)

    collection = db.users if lookup == Lookup.USERS else db.supervisors
    record = await collection.find_one({"email": payload.email}, {"_id": 0, "password": 0})
    if not record:
        return _NOT_FOUND[payload.role]

    return Identity(user_id=record["id"], email=payload.email, role=payload.role)
