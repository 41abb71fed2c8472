from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ContactRequestCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    specialty: Optional[str] = None
    message: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[str] = None


class ContactRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    specialty: str
    status: str
    created_at: datetime
