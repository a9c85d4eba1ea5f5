from fastapi import APIRouter, Depends
from typing import Optional
from models.auth import Identity
from core.access import Policy
from core.auth import require, require_user_id
from database import get_db
from controllers import notification_controller

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def get_notifications(is_read: Optional[bool] = None, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    data = await notification_controller.get_notifications(db, require_user_id(current_user), is_read)
    return {"success": True, "message": "Notifications fetched successfully", "data": data}


@router.get("/unread-count")
async def get_unread_count(db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    data = await notification_controller.get_unread_count(db, require_user_id(current_user))
    return {"success": True, "message": "Unread count fetched successfully", "data": data}


@router.patch("/read-all")
async def mark_all_as_read(db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    data = await notification_controller.mark_all_as_read(db, require_user_id(current_user))
    return {"success": True, "message": data["message"], "data": data}


@router.patch("/{notification_id}/read")
async def mark_as_read(notification_id: str, db=Depends(get_db), current_user: Identity = Depends(require(Policy.ANY_AUTHENTICATED))):
    data = await notification_controller.mark_as_read(db, notification_id, require_user_id(current_user))
    return {"success": True, "message": "Notification marked as read", "data": data}
