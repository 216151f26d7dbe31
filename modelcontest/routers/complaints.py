import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..models.models import Complaint, ComplaintPriority
from ..schemas.complaint import (
    ComplaintCreate,
    ComplaintCreated,
    ContactRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Complaints"])


@router.post("/contact", response_model=ComplaintCreated, status_code=201)
def contact(data: ContactRequest, db: Session = Depends(get_db)):
    """File a contact form message as a general complaint"""
    complaint = Complaint(
        reporter_name=data.name,
        reporter_email=data.email,
        type="other",
        subject=data.subject or "Contact form message",
        description=data.message,
        target_type="general",
        target_id="contact",
        priority=ComplaintPriority.MEDIUM,
    )
    db.add(complaint)
    db.commit()
    db.refresh(complaint)
    logger.info("Contact message stored as complaint %s", complaint.id)
    return {
        "message": "Thank you for your message. We'll get back to you soon.",
        "complaint_id": complaint.id,
    }


@router.post("/complaints", response_model=ComplaintCreated, status_code=201)
def report(data: ComplaintCreate, db: Session = Depends(get_db)):
    """Report abusive content, a user or a contest"""
    complaint = Complaint(**data.model_dump())
    db.add(complaint)
    db.commit()
    db.refresh(complaint)
    logger.info(
        "Complaint %s filed against %s %s",
        complaint.id,
        complaint.target_type,
        complaint.target_id,
    )
    return {
        "message": "Report submitted successfully",
        "complaint_id": complaint.id,
    }
