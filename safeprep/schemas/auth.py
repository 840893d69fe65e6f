from typing import Annotated, Any, Literal

from pydantic import BaseModel, EmailStr, Field, computed_field


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    display_name: str | None = Field(default=None, min_length=1, max_length=120)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = Field(default=None, max_length=120)


class UserOut(BaseModel):
    id: str
    email: EmailStr
    display_name: str | None = None


class StandardRole(BaseModel):
    kind: Literal["standard"] = "standard"

    @computed_field
    @property
    def is_admin(self) -> bool:
        return False

    @computed_field
    @property
    def is_student(self) -> bool:
        return True


class AdministratorRole(BaseModel):
    kind: Literal["administrator"] = "administrator"
    admin_level: str
    permissions: Any = Field(default_factory=dict)

    @computed_field
    @property
    def is_admin(self) -> bool:
        return True

    @computed_field
    @property
    def is_student(self) -> bool:
        return False


Role = Annotated[StandardRole | AdministratorRole, Field(discriminator="kind")]


class AuthResponse(BaseModel):
    user: UserOut
    access_token: str
    access_token_expires_in: int
    role: Role


class SignOutResponse(BaseModel):
    success: bool


class MeResponse(BaseModel):
    user: UserOut
    role: Role
