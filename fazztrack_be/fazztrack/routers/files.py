from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from fazztrack.models.user import User, get_db
from fazztrack.models.design import FileAttachment
from fazztrack.core.exceptions import NotFound
from fazztrack.schemas.design import FileOut
from fazztrack.services.authorization import authorize
from fazztrack.utils.security import get_current_user
from fazztrack.utils.storage import create_attachment


router = APIRouter()


# Generic upload, used for payment receipts before the payment is recorded
@router.post("/upload", response_model=FileOut, status_code=201)
def upload_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "file.upload")
    attachment = create_attachment(db, file)
    db.commit()
    db.refresh(attachment)
    return FileOut.model_validate(attachment)


@router.get("/{id}", response_model=FileOut)
def get_file(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    authorize(current_user, "file.view")
    attachment = db.query(FileAttachment).filter(FileAttachment.file_id == id).first()
    if not attachment:
        raise NotFound("File", id)
    return FileOut.model_validate(attachment)
