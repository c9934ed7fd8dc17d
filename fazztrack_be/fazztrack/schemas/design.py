from pydantic import BaseModel, ConfigDict
from typing import Optional, Literal
from datetime import datetime


DesignStatus = Literal["new", "in_progress", "finalized", "completed"]


class FileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    file_id: int
    file_path: str
    file_name: str
    created_at: Optional[datetime] = None


class DesignCreate(BaseModel):
    order_id: int
    designer_id: int
    status: Optional[DesignStatus] = None


class DesignUpdate(BaseModel):
    designer_id: Optional[int] = None
    status: Optional[DesignStatus] = None


class DesignOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    design_id: int
    order_id: int
    status: DesignStatus
    designer_id: int
    design_file_id: Optional[int] = None
    design_file: Optional[FileOut] = None
