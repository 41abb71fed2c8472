from pydantic import BaseModel, ConfigDict

from app.models.account import AccountKind


class ActorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    kind: AccountKind
