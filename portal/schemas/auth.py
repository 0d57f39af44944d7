from pydantic import BaseModel, field_validator


def _validate_password_length(value: str) -> str:
    if len(value.encode("utf-8")) > 72:
        raise ValueError("Password too long (max 72 bytes)")
    return value


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    username: str
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _validate_password_length(value)


class RefreshRequest(BaseModel):
    refresh_token: str


class Message(BaseModel):
    message: str
