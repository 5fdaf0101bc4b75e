"""Request/response bodies for /auth/register and /auth/login."""

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from readsync.schemas.common import CamelModel


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: StrictStr = Field(min_length=1, max_length=255)
    email: StrictStr = Field(min_length=1, max_length=320)
    # Minimum length is a business rule checked by AuthService
    password: StrictStr = Field(min_length=1, max_length=1024)


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: StrictStr = Field(min_length=1, max_length=320)
    password: StrictStr = Field(min_length=1, max_length=1024)


class UserData(CamelModel):
    id: str
    email: str
    name: str


class RegisterData(UserData):
    pass


class LoginData(CamelModel):
    token: str
    # Kept snake_case on the wire; existing clients read `refresh_token`
    refresh_token: str = Field(alias="refresh_token")
    user: UserData
