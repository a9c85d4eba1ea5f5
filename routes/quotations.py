from fastapi import APIRouter, Depends, Request
from models.auth import Identity
from models.quotation import QuotationCreate, QuotationUpdate
from core.access import Policy
from core.auth import require, require_user_id
from database import get_db
from controllers import quotation_controller
from controllers.audit_controller import log_audit, get_client_ip as _ip, get_user_agent as _ua

router = APIRouter(prefix="/quotations", tags=["quotations"])


def _ok(message: str, data):
    return {"success": True, "message": message, "data": data}


# ── Admin ─────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_quotation(data: QuotationCreate, request: Request, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ADMIN_ONLY))):
    result = await quotation_controller.create_quotation(db, data)
    await log_audit(db, current_user, "CREATE", "quotations", "quotation", f"Created quotation {result['display_id']} for project {data.project_id}", result["id"], _ip(request), _ua(request))
    return _ok("Quotation created successfully", result)


@router.put("/{quotation_id}")
async def update_quotation(quotation_id: str, data: QuotationUpdate, request: Request, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ADMIN_ONLY))):
    result = await quotation_controller.update_quotation(db, quotation_id, data)
    await log_audit(db, current_user, "UPDATE", "quotations", "quotation", "Updated quotation", quotation_id, _ip(request), _ua(request))
    return _ok("Quotation updated successfully", result)


@router.post("/{quotation_id}/resend")
async def resend_quotation(quotation_id: str, request: Request, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ADMIN_ONLY))):
    result = await quotation_controller.resend_quotation(db, quotation_id)
    await log_audit(db, current_user, "UPDATE", "quotations", "quotation", "Resubmitted rejected quotation", quotation_id, _ip(request), _ua(request))
    return _ok("Quotation resubmitted successfully", result)


@router.delete("/{quotation_id}")
async def delete_quotation(quotation_id: str, request: Request, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ADMIN_ONLY))):
    result = await quotation_controller.delete_quotation(db, quotation_id)
    await log_audit(db, current_user, "DELETE", "quotations", "quotation", "Deleted quotation", quotation_id, _ip(request), _ua(request))
    return _ok("Quotation deleted successfully", result)


# ── Customer / Supervisor ─────────────────────────────────

@router.get("/pending")
async def get_pending_quotations(db=Depends(get_db), current_user: Identity = Depends(require(Policy.CUSTOMER_OR_SUPERVISOR))):
    return _ok("Pending quotations fetched successfully", await quotation_controller.list_pending_quotations(db))


@router.post("/{quotation_id}/approve")
async def approve_quotation(quotation_id: str, request: Request, db=Depends(get_db), current_user: Identity = Depends(require(Policy.CUSTOMER_OR_SUPERVISOR))):
    user_id = require_user_id(current_user)
    result = await quotation_controller.approve_quotation(db, quotation_id, user_id)
    await log_audit(db, current_user, "APPROVE", "quotations", "quotation", f"Approved quotation {result['display_id']}", quotation_id, _ip(request), _ua(request))
    return _ok("Quotation approved successfully", result)


@router.post("/{quotation_id}/reject")
async def reject_quotation(quotation_id: str, request: Request, db=Depends(get_db), current_user: Identity = Depends(require(Policy.CUSTOMER_OR_SUPERVISOR))):
    user_id = require_user_id(current_user)
    result = await quotation_controller.reject_quotation(db, quotation_id, user_id)
    await log_audit(db, current_user, "REJECT", "quotations", "quotation", f"Rejected quotation {result['display_id']}", quotation_id, _ip(request), _ua(request))
    return _ok("Quotation rejected successfully", result)


# ── Any authenticated ─────────────────────────────────────

@router.get("")
async def get_quotations(db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    return _ok("Quotations fetched successfully", await quotation_controller.list_quotations(db))


@router.get("/status/{status}")
async def get_quotations_by_status(status: str, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    result = await quotation_controller.list_quotations_by_status(db, status)
    return _ok(f"Quotations with status '{status}' fetched successfully", result)


@router.get("/project/{project_id}")
async def get_quotations_by_project(project_id: str, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    return _ok("Quotations fetched successfully", await quotation_controller.list_quotations_by_project(db, project_id))


@router.get("/{quotation_id}/total-amount")
async def get_quotation_total(quotation_id: str, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    return _ok("Quotation total fetched successfully", await quotation_controller.get_quotation_total(db, quotation_id))


@router.get("/{quotation_id}")
async def get_quotation(quotation_id: str, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    return _ok("Quotation fetched successfully", await quotation_controller.get_quotation(db, quotation_id))
