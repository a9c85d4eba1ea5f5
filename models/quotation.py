from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime, timezone


class QuotationStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    LOCKED = "locked"


class LineItem(BaseModel):
    description: str
    amount: float = Field(allow_inf_nan=False)


class QuotationCreate(BaseModel):
    project_id: str
    total_amount: float = Field(0.0, allow_inf_nan=False)
    # Kept loose so recompute_total can report which item is malformed.
    line_items: List[dict] = Field(default_factory=list)
    date: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_url: Optional[str] = None


class QuotationUpdate(BaseModel):
    project_id: Optional[str] = None
    total_amount: Optional[float] = Field(None, allow_inf_nan=False)
    status: Optional[str] = None
    line_items: Optional[List[dict]] = None
    date: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_url: Optional[str] = None


class Quotation(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str
    total_amount: float = Field(0.0, allow_inf_nan=False)
    status: str = QuotationStatus.PENDING
    line_items: List[LineItem] = Field(default_factory=list)
    date: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_url: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
