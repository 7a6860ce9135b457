from pydantic import BaseModel, EmailStr


class MagicLinkRequestIn(BaseModel):
    email: EmailStr


class CodeExchangeIn(BaseModel):
    code: str


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class IdentityOut(BaseModel):
    id: str
    email: str
