from fastapi import APIRouter, Depends, File, UploadFile

from schemas import ImageUploadResponse
from services import LocalImageStorage
from utils.security import require_admin
from .deps import get_storage

router = APIRouter()

@router.post("/admin/uploads/images", response_model=ImageUploadResponse, status_code=201)
def upload_image(
    file: UploadFile = File(...),
    current_user: dict = Depends(require_admin),
    storage: LocalImageStorage = Depends(get_storage),
):
    return storage.save(file.filename, file.content_type, file.file)
