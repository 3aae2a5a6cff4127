from pydantic import BaseModel, Field
from typing import Optional

class UserSession(BaseModel):
    """Signed in principal, handed explicitly to every listing operation"""
    user_id: str = Field(..., description='Firebase Auth UID of the signed in user')
    email: Optional[str] = Field(default=None, description='Email on the Firebase account, if any')

class SignOutResponse(BaseModel):
    message: str
    signed_out: bool
