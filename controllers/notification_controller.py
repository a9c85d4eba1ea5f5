from fastapi import HTTPException
from typing import Optional, List

from models.auth import UserRole
from models.notification import Notification


async def create_notification(db, user_id: str, message: str, type: Optional[str] = None) -> Notification:
    notification = Notification(user_id=user_id, message=message, type=type)
    await db.notifications.insert_one(notification.model_dump())
    return notification


async def notify_admins(db, message: str, type: Optional[str] = None) -> int:
    """Store one notification per persisted admin. Returns how many were written."""
    admins = await db.users.find({"role": UserRole.ADMIN}, {"_id": 0, "id": 1}).to_list(1000)
    notifications = [Notification(user_id=a["id"], message=message, type=type).model_dump() for a in admins]
    if notifications:
        await db.notifications.insert_many(notifications)
    return len(notifications)


async def get_notifications(db, user_id: str, is_read: Optional[bool] = None) -> List[dict]:
    query = {"user_id": user_id}
    if is_read is not None:
        query["is_read"] = is_read
    return await db.notifications.find(query, {"_id": 0}).sort("created_at", -1).to_list(1000)


async def get_unread_count(db, user_id: str) -> dict:
    count = await db.notifications.count_documents({"user_id": user_id, "is_read": False})
    return {"count": count}


async def mark_as_read(db, notification_id: str, user_id: str) -> dict:
    notification = await db.notifications.find_one({"id": notification_id}, {"_id": 0})
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    if notification["user_id"] != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized access to notification")
    await db.notifications.update_one({"id": notification_id}, {"$set": {"is_read": True}})
    return await db.notifications.find_one({"id": notification_id}, {"_id": 0})


async def mark_all_as_read(db, user_id: str) -> dict:
    result = await db.notifications.update_many({"user_id": user_id, "is_read": False}, {"$set": {"is_read": True}})
    return {"count": result.modified_count, "message": "All notifications marked as read"}
