from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class EmailCheck(BaseModel):
    email: Optional[str] = None


class VerificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    email: Optional[str] = None
