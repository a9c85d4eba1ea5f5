import functools
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel

from config import QUOTATION_STATUSES
from controllers.notification_controller import notify_admins
from core.exceptions import (
    AppError, QuotationNotFoundError, InvalidLineItemError,
    AlreadyApprovedError, CannotApproveRejectedError, AlreadyLockedError, OnlyPendingCanBeApprovedError,
    CannotRejectApprovedError, AlreadyRejectedError, OnlyPendingCanBeRejectedError,
    OnlyRejectedCanBeResubmittedError,
)
from models.quotation import Quotation, QuotationCreate, QuotationUpdate, QuotationStatus

logger = logging.getLogger(__name__)

# Precondition failures for approve/reject, checked in this order; any other
# non-pending status falls through to the "only pending" error.
_APPROVE_GUARDS = {
    QuotationStatus.APPROVED: AlreadyApprovedError,
    QuotationStatus.REJECTED: CannotApproveRejectedError,
    QuotationStatus.LOCKED: AlreadyLockedError,
}
_REJECT_GUARDS = {
    QuotationStatus.APPROVED: CannotRejectApprovedError,
    QuotationStatus.REJECTED: AlreadyRejectedError,
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _lifecycle_errors(func):
    """Unexpected failures in a status transition surface as 400s, never 5xx."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"{func.__name__} failed: {e}")
            raise AppError(f"Quotation update failed: {e}")
    return wrapper


# ── Line items ────────────────────────────────────────────

def _is_finite(amount) -> bool:
    try:
        return math.isfinite(amount)
    except OverflowError:
        return False


def recompute_total(line_items: List) -> float:
    """Sum of line item amounts. Every item needs a non-empty description and a numeric amount."""
    total = 0.0
    for index, item in enumerate(line_items):
        if isinstance(item, BaseModel):
            item = item.model_dump()
        if not isinstance(item, dict):
            raise InvalidLineItemError(f"Invalid line item at index {index}: expected an object")
        description = item.get("description")
        amount = item.get("amount")
        if not isinstance(description, str) or not description.strip():
            raise InvalidLineItemError(f"Line item at index {index} must have a non-empty 'description'")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not _is_finite(amount):
            raise InvalidLineItemError(f"Line item at index {index} must have a numeric 'amount'")
        total += amount
    if not math.isfinite(total):
        raise InvalidLineItemError("Line item amounts add up to more than a total can hold")
    return round(total, 2)


def _clean_line_items(line_items: List) -> List[dict]:
    return [{"description": i["description"], "amount": float(i["amount"])} for i in line_items]


# ── Formatting ────────────────────────────────────────────

def format_quotation_id(quotation_id: str, index: Optional[int] = None) -> str:
    """Short display id: sequential `QU0001` in listings, hash-derived otherwise."""
    if index is not None:
        return f"QU{index + 1:04d}"
    try:
        num = int(quotation_id.split("-")[0][:4], 16) % 10000
    except ValueError:
        num = 0
    return f"QU{num:04d}"


async def _format(db, quotation: dict, index: Optional[int] = None) -> dict:
    project = await db.projects.find_one({"id": quotation.get("project_id")}, {"_id": 0}) or {}
    customer = {}
    if project.get("user_id"):
        customer = await db.users.find_one({"id": project["user_id"]}, {"_id": 0, "password": 0}) or {}
    return {
        **quotation,
        "display_id": format_quotation_id(quotation["id"], index),
        "project_name": project.get("name"),
        "customer_name": customer.get("user_name"),
        "customer_email": customer.get("email"),
        "total_amount": float(quotation.get("total_amount") or 0),
        "line_items": quotation.get("line_items") or [],
    }


async def _find(db, quotation_id: str) -> dict:
    quotation = await db.quotations.find_one({"id": quotation_id}, {"_id": 0})
    if not quotation:
        raise QuotationNotFoundError()
    return quotation


# ── CRUD ──────────────────────────────────────────────────

async def create_quotation(db, data: QuotationCreate) -> dict:
    line_items = data.line_items or []
    # Caller total only stands when there is nothing to sum.
    total = recompute_total(line_items) if line_items else data.total_amount
    quotation = Quotation(
        project_id=data.project_id,
        total_amount=total,
        status=QuotationStatus.PENDING,
        line_items=_clean_line_items(line_items),
        date=data.date,
        file_name=data.file_name,
        file_type=data.file_type,
        file_url=data.file_url,
    )
    doc = quotation.model_dump()
    await db.quotations.insert_one(dict(doc))
    return await _format(db, doc)


async def get_quotation(db, quotation_id: str) -> dict:
    return await _format(db, await _find(db, quotation_id))


async def get_quotation_total(db, quotation_id: str) -> dict:
    quotation = await _find(db, quotation_id)
    return {
        "id": quotation["id"],
        "total_amount": float(quotation.get("total_amount") or 0),
        "line_items": quotation.get("line_items") or [],
    }


async def _list(db, query: dict) -> List[dict]:
    quotations = await db.quotations.find(query, {"_id": 0}).sort("created_at", -1).to_list(1000)
    return [await _format(db, q, i) for i, q in enumerate(quotations)]


async def list_quotations(db) -> List[dict]:
    return await _list(db, {})


async def list_quotations_by_status(db, status: str) -> List[dict]:
    if status not in QUOTATION_STATUSES:
        raise AppError(f"Invalid status. Must be one of: {', '.join(QUOTATION_STATUSES)}")
    return await _list(db, {"status": status})


async def list_pending_quotations(db) -> List[dict]:
    return await _list(db, {"status": QuotationStatus.PENDING})


async def list_quotations_by_project(db, project_id: str) -> List[dict]:
    if not project_id:
        raise AppError("Project ID is required")
    return await _list(db, {"project_id": project_id})


async def update_quotation(db, quotation_id: str, data: QuotationUpdate) -> dict:
    """Admin edit. Also the only path that moves a rejected quotation back to pending."""
    existing = await _find(db, quotation_id)
    provided = data.model_dump(exclude_unset=True)

    updates = {}
    for key in ("project_id", "total_amount", "status", "file_name", "file_type", "file_url"):
        if provided.get(key) not in (None, ""):
            updates[key] = provided[key]
    if "date" in provided:
        updates["date"] = provided["date"] or None
    if "line_items" in provided:
        line_items = provided["line_items"] or []
        if line_items:
            updates["total_amount"] = recompute_total(line_items)
        updates["line_items"] = _clean_line_items(line_items)
    elif "total_amount" in updates and existing.get("line_items"):
        # Stored line items still define the total.
        updates["total_amount"] = recompute_total(existing["line_items"])

    if not updates:
        raise AppError("No fields provided to update")
    if "status" in updates and updates["status"] not in QUOTATION_STATUSES:
        raise AppError(f"Invalid status. Must be one of: {', '.join(QUOTATION_STATUSES)}")

    updates["updated_at"] = _now()
    await db.quotations.update_one({"id": quotation_id}, {"$set": updates})
    if "status" in updates and updates["status"] != existing.get("status"):
        logger.info(f"Quotation {quotation_id} status changed by admin edit: {existing.get('status')} -> {updates['status']}")
    return await get_quotation(db, quotation_id)


async def delete_quotation(db, quotation_id: str) -> dict:
    result = await db.quotations.delete_one({"id": quotation_id})
    if result.deleted_count == 0:
        raise QuotationNotFoundError()
    return {"message": "Quotation deleted successfully"}


# ── Lifecycle ─────────────────────────────────────────────

def _check_pending(status: str, guards: dict, fallback):
    if status == QuotationStatus.PENDING:
        return
    raise guards.get(status, fallback)()


async def _transition(db, quotation_id: str, target: str, guards: dict, fallback) -> dict:
    quotation = await _find(db, quotation_id)
    _check_pending(quotation.get("status"), guards, fallback)

    # Conditional write: only a still-pending row moves, so two concurrent
    # transitions cannot both succeed.
    result = await db.quotations.update_one(
        {"id": quotation_id, "status": QuotationStatus.PENDING},
        {"$set": {"status": target, "updated_at": _now()}},
    )
    if result.matched_count == 0:
        current = await _find(db, quotation_id)
        _check_pending(current.get("status"), guards, fallback)
        raise fallback()
    return await _find(db, quotation_id)


async def _actor_name(db, user_id: str) -> str:
    user = await db.users.find_one({"id": user_id}, {"_id": 0, "user_name": 1})
    if user and user.get("user_name"):
        return user["user_name"]
    supervisor = await db.supervisors.find_one({"id": user_id}, {"_id": 0, "full_name": 1})
    if supervisor and supervisor.get("full_name"):
        return supervisor["full_name"]
    return user_id


async def _notify_transition(db, quotation: dict, acting_user_id: str, verb: str, type: str):
    """Best effort: a failed notification never fails the transition."""
    try:
        project = await db.projects.find_one({"id": quotation.get("project_id")}, {"_id": 0, "name": 1}) or {}
        project_name = project.get("name") or "Unknown Project"
        actor = await _actor_name(db, acting_user_id)
        display_id = format_quotation_id(quotation["id"])
        await notify_admins(db, f"Quotation {display_id} for {project_name} has been {verb} by {actor}", type)
    except Exception as e:
        logger.error(f"Failed to send notification for quotation {quotation.get('id')}: {e}")


@_lifecycle_errors
async def approve_quotation(db, quotation_id: str, acting_user_id: str) -> dict:
    updated = await _transition(db, quotation_id, QuotationStatus.APPROVED, _APPROVE_GUARDS, OnlyPendingCanBeApprovedError)
    logger.info(f"Quotation {quotation_id} approved by {acting_user_id}")
    await _notify_transition(db, updated, acting_user_id, "APPROVED", "quotation_approval")
    return await _format(db, updated)


@_lifecycle_errors
async def reject_quotation(db, quotation_id: str, acting_user_id: str) -> dict:
    # Rejected rows stay editable so an admin can resubmit them.
    updated = await _transition(db, quotation_id, QuotationStatus.REJECTED, _REJECT_GUARDS, OnlyPendingCanBeRejectedError)
    logger.info(f"Quotation {quotation_id} rejected by {acting_user_id}")
    await _notify_transition(db, updated, acting_user_id, "REJECTED", "quotation_rejection")
    return await _format(db, updated)


@_lifecycle_errors
async def resend_quotation(db, quotation_id: str) -> dict:
    quotation = await _find(db, quotation_id)
    if quotation.get("status") != QuotationStatus.REJECTED:
        raise OnlyRejectedCanBeResubmittedError()
    result = await db.quotations.update_one(
        {"id": quotation_id, "status": QuotationStatus.REJECTED},
        {"$set": {"status": QuotationStatus.PENDING, "updated_at": _now()}},
    )
    if result.matched_count == 0:
        raise OnlyRejectedCanBeResubmittedError()
    logger.info(f"Quotation {quotation_id} resubmitted for approval")
    return await get_quotation(db, quotation_id)
