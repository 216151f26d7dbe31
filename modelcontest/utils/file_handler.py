import os
import uuid
from fastapi import UploadFile
from ..config import settings
from ..exceptions import AppError, ValidationError

UPLOAD_URL_PREFIX = "/uploads"


def save_upload_file(upload_file: UploadFile, category: str) -> str:
    """Save an uploaded image and return the URL it is served from"""
    # Validate file type
    file_extension = os.path.splitext(upload_file.filename or "")[1]
    if file_extension.lower().lstrip(".") not in settings.image_extensions:
        raise ValidationError("Only image files are allowed!")
    content_type = upload_file.content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed!")

    file_size = 0
    chunk_size = 1024 * 1024  # 1MB

    # Create upload directory if it doesn't exist
    target_dir = os.path.join(settings.upload_dir, category)
    os.makedirs(target_dir, exist_ok=True)

    # Generate unique filename
    unique_filename = f"{uuid.uuid4()}{file_extension.lower()}"
    file_path = os.path.join(target_dir, unique_filename)

    # Save file
    with open(file_path, "wb") as f:
        while chunk := upload_file.file.read(chunk_size):
            file_size += len(chunk)
            if file_size > settings.max_file_size:
                f.close()
                os.remove(file_path)
                raise AppError("File too large", status_code=413)
            f.write(chunk)

    return f"{UPLOAD_URL_PREFIX}/{category}/{unique_filename}"


def delete_file(file_url: str):
    """Delete a previously uploaded file"""
    if not file_url or not file_url.startswith(UPLOAD_URL_PREFIX + "/"):
        return
    relative = file_url[len(UPLOAD_URL_PREFIX) + 1:]
    file_path = os.path.join(settings.upload_dir, relative)
    if os.path.exists(file_path):
        os.remove(file_path)
