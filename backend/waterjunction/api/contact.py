"""
Contact API Endpoints
Storefront contact form and the admin inbox

Author: Water Junction
Date: 2025-06-02
"""
import logging
from typing import Any, Dict, Literal, Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import require_admin
from waterjunction.domain.user import User
from waterjunction.repositories.contact_repository import ContactRepository
from waterjunction.services.notification_service import NotificationService


logger = logging.getLogger(__name__)

router = APIRouter()


class ContactStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["new", "read", "replied"]
    reply_message: Optional[str] = Field(None, alias="replyMessage")


def validate_contact(payload: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """
    Trim and check a contact form submission

    Raises:
        ValueError: with the first problem found, in field order
    """
    name = str(payload.get("name") or "").strip()
    if not name:
        raise ValueError("Name is required")

    email = str(payload.get("email") or "").strip().lower()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Please provide a valid email")

    message = str(payload.get("message") or "").strip()
    if not message:
        raise ValueError("Message is required")

    phone = str(payload.get("phone") or "").strip() or None

    return {"name": name, "email": email, "phone": phone, "message": message}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def submit_contact(payload: Dict[str, Any] = Body(...)):
    """
    Store a contact message and email the admin

    The email is best effort: the message is saved even when it fails.
    """
    try:
        try:
            fields = validate_contact(payload)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        contact = ContactRepository().create(
            name=fields["name"],
            email=fields["email"],
            message=fields["message"],
            phone=fields["phone"],
        )

        if not await NotificationService().notify_contact_received(contact):
            logger.info(f"Contact {contact.id} saved without admin notification")

        return {"success": True, "contact": contact.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error submitting contact form: {str(e)}")


@router.get("/")
async def get_contacts(admin: User = Depends(require_admin)):
    try:
        contacts = ContactRepository().find_all()
        return {"success": True, "contacts": [contact.to_dict() for contact in contacts]}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching contacts: {str(e)}")


@router.put("/{contact_id}/status")
async def update_contact_status(contact_id: int, request: ContactStatusUpdate, admin: User = Depends(require_admin)):
    try:
        contact = ContactRepository().update_status(contact_id, request.status, request.reply_message)
        if not contact:
            raise HTTPException(status_code=404, detail="Contact not found")
        return {"success": True, "contact": contact.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating contact: {str(e)}")
