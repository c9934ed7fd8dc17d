from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.orm import Session

from fazztrack.models.user import User, get_db
from fazztrack.core.exceptions import NotFound
from fazztrack.schemas.design import DesignCreate, DesignOut, DesignUpdate
from fazztrack.services import design_workflow, order_lifecycle
from fazztrack.services.authorization import authorize
from fazztrack.utils.security import get_current_user
from fazztrack.utils.storage import create_attachment


router = APIRouter()


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User", user_id)
    return user


@router.post("/", response_model=DesignOut, status_code=201)
def create_design(
    payload: DesignCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "design.create")
    order = order_lifecycle.lock_order(db, payload.order_id)
    designer = _get_user(db, payload.designer_id)
    design = design_workflow.create_design(db, order, designer, payload.status)
    db.commit()
    db.refresh(design)
    return DesignOut.model_validate(design)


@router.get("/{id}", response_model=DesignOut)
def get_design(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    design = design_workflow.get_design(db, id)
    authorize(current_user, "design.view", design)
    return DesignOut.model_validate(design)


@router.put("/{id}", response_model=DesignOut)
def update_design(
    id: int,
    payload: DesignUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    design = design_workflow.lock_design(db, id)
    authorize(current_user, "design.update", design)
    designer = _get_user(db, payload.designer_id) if payload.designer_id is not None else None
    design_workflow.update_design(db, design, designer=designer, status=payload.status)
    db.commit()
    db.refresh(design)
    return DesignOut.model_validate(design)


@router.post("/{id}/upload", response_model=DesignOut)
def upload_design(
    id: int,
    design_file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    design = design_workflow.lock_design(db, id)
    authorize(current_user, "design.update", design)
    attachment = create_attachment(db, design_file, subdir="designs")
    design_workflow.attach_file(db, design, attachment)
    db.commit()
    db.refresh(design)
    return DesignOut.model_validate(design)


@router.post("/{id}/finalize")
def finalize_design(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    design = design_workflow.lock_design(db, id)
    authorize(current_user, "design.finalize", design)
    design_workflow.finalize_design(db, design)
    db.commit()
    db.refresh(design)
    return {"message": "Design finalized successfully", "design": DesignOut.model_validate(design)}


@router.delete("/{id}", status_code=204)
def delete_design(id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    design = design_workflow.lock_design(db, id)
    authorize(current_user, "design.delete", design)
    design_workflow.delete_design(db, design)
    db.commit()
    return Response(status_code=204)
