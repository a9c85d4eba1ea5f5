import logging
import math
from typing import Optional

from models.audit import AuditLog
from models.auth import Identity

logger = logging.getLogger(__name__)


def get_client_ip(request) -> Optional[str]:
    """Real client IP: X-Forwarded-For (proxy) first, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def get_user_agent(request) -> str:
    return request.headers.get("user-agent", "")


async def log_audit(
    db,
    actor: Identity,
    action: str,
    module: str,
    resource: str,
    description: str,
    resource_id: str = None,
    ip_address: str = None,
    user_agent: str = None,
):
    """Fire-and-forget audit log entry; never raises."""
    try:
        entry = AuditLog(
            user_id=actor.user_id,
            user_email=actor.email,
            user_role=actor.role,
            action=action,
            module=module,
            resource=resource,
            resource_id=resource_id,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await db.audit_logs.insert_one(entry.model_dump())
    except Exception as e:
        logger.warning(f"Audit write failed for {action} {module}/{resource}: {e}")


async def get_audit_logs(db, page: int = 1, limit: int = 25, **filters) -> dict:
    """Newest-first page of audit entries. `filters` are exact matches on module, action, user_id or resource_id."""
    query = {k: v for k, v in filters.items() if v}
    total = await db.audit_logs.count_documents(query)
    items = await db.audit_logs.find(query, {"_id": 0}) \
        .sort("timestamp", -1) \
        .skip((page - 1) * limit) \
        .limit(limit) \
        .to_list(limit)
    return {"data": items, "total": total, "page": page, "pages": math.ceil(total / limit), "limit": limit}
