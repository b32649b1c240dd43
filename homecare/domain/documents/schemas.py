"""Patient document schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DocumentResponse(BaseModel):
    id: int
    patient_id: int
    type: str
    file_name: str
    file_size: int
    mime_type: str
    storage_path: str
    description: Optional[str] = None
    uploaded_by: Optional[int] = None
    uploaded_by_name: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DocumentUrlResponse(BaseModel):
    url: str
    document: DocumentResponse
