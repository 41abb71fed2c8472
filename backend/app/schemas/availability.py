from typing import Optional

from pydantic import BaseModel, ConfigDict


class AvailabilityCreate(BaseModel):
    day_of_week: int
    start_time: str
    end_time: str
    is_available: Optional[bool] = True


class AvailabilityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    practitioner_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool
