from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=16)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    username: str
    password: str


class AuthResponse(BaseModel):
    user_id: str
    username: str
    token: str


class PushSubscriptionRequest(BaseModel):
    endpoint: str
    keys: dict
    expirationTime: float | None = None


class VapidPublicKeyResponse(BaseModel):
    public_key: str | None = None
