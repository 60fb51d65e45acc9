from fastapi import APIRouter, Depends, File, UploadFile, status

from souqote.storage import service
from souqote.users.auth import get_current_user
from souqote.users.schemas import CurrentUser

router = APIRouter()


@router.post("/{bucket}", status_code=status.HTTP_201_CREATED)
def upload_file(
    bucket: str,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.store_upload(bucket, current_user.id, file)
