"""Files API routes."""
from fastapi import APIRouter, Depends, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse

from careerai.dependencies import get_current_user_id
from careerai.schemas.file import UploadResponse
from careerai.services.file_storage import file_storage, CHAT_FILES_DIR, PUBLIC_URL_PREFIX

router = APIRouter(prefix="/api/files", tags=["files"])

# Serves the public URLs stored on attachments.
public_router = APIRouter(prefix=f"/{PUBLIC_URL_PREFIX}/{CHAT_FILES_DIR}", tags=["files"])


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_file(
    file: UploadFile = FastAPIFile(...),
    user_id: int = Depends(get_current_user_id),
):
    """Store a chat upload. Echo the returned metadata back when sending the message."""
    contents = await file.read()
    return await file_storage.save_upload(contents, file.filename or "unnamed", file.content_type)


@router.get("/{stored_name}")
@public_router.get("/{stored_name}")
async def download_file(stored_name: str):
    """Download a chat upload by its stored name."""
    path = file_storage.chat_file_path(stored_name)
    return FileResponse(path=path, filename=stored_name)
