from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from typing import Optional
from ..database import get_db
from ..dependencies import get_current_model
from ..models.models import Model
from ..schemas.submission import EntrySubmitResponse
from ..services.entry_service import submit_entry
from ..utils.file_handler import delete_file, save_upload_file

router = APIRouter(prefix="/api/contest-entries", tags=["Entries"])


@router.post("", response_model=EntrySubmitResponse, status_code=201)
def create_entry(
    contest_id: int = Form(...),
    title: str = Form(..., min_length=1, max_length=200),
    description: Optional[str] = Form(None),
    image: UploadFile = File(...),
    model: Model = Depends(get_current_model),
    db: Session = Depends(get_db),
):
    """Submit a photo entry to a contest"""
    photo_url = save_upload_file(image, "entries")
    try:
        entry = submit_entry(
            db, model, contest_id, title, photo_url, description
        )
    except Exception:
        # Don't keep the image of a rejected submission
        delete_file(photo_url)
        raise
    return {"message": "Photo submitted successfully", "entry": entry}
