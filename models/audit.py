from pydantic import BaseModel, Field
from typing import Optional
import uuid
from datetime import datetime, timezone


class AuditLog(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None   # absent for the env-bootstrap admin
    user_email: str
    user_role: str
    action: str          # LOGIN, CREATE, UPDATE, DELETE, APPROVE, REJECT
    module: str          # auth, quotations
    resource: str        # session, quotation
    resource_id: Optional[str] = None
    description: str     # "Approved quotation QU0001"
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
