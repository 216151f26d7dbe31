from fastapi import APIRouter, Depends, File, UploadFile
from ..dependencies import get_current_user
from ..models.models import User
from ..utils.file_handler import save_upload_file

router = APIRouter(prefix="/api/upload", tags=["Uploads"])


@router.post("/banner")
def upload_banner(
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """Upload a contest banner image"""
    return {"url": save_upload_file(image, "banners")}


@router.post("/profile")
def upload_profile(
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """Upload a profile picture"""
    return {"url": save_upload_file(image, "profiles")}
