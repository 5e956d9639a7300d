"""
Contact Domain Model
"""
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


CONTACT_STATUSES = ("new", "read", "replied")


class Contact(BaseModel):
    """Message submitted through the storefront contact form"""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    message: str
    status: str = "new"
    replied_at: Optional[datetime] = None
    reply_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()
