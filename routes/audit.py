from fastapi import APIRouter, Depends, Query
from typing import Optional
from models.auth import Identity
from core.access import Policy
from core.auth import require
from database import get_db
from controllers import audit_controller

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("")
async def list_audit_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    module: Optional[str] = None,
    action: Optional[str] = None,
    user_id: Optional[str] = None,
    resource_id: Optional[str] = None,
    db=Depends(get_db),
    current_user: Identity = Depends(require(Policy.ADMIN_ONLY)),
):
    result = await audit_controller.get_audit_logs(
        db, page, limit, module=module, action=action, user_id=user_id, resource_id=resource_id,
    )
    return {"success": True, "message": "Audit logs fetched successfully", **result}
