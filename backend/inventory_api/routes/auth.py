from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session

from inventory_api.core.database import get_db
from inventory_api.core.deps import get_credentials, get_current_user, get_tokens, require_admin
from inventory_api.core.roles import Role
from inventory_api.core.security import CredentialService, TokenService
from inventory_api.core.serialization_helpers import envelope
from inventory_api.models.user import User
from inventory_api.schemas.base import CamelModel
from inventory_api.services import user_service


router = APIRouter()


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    role: Role = Role.staff


class PublicRegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class PasswordChangeRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class ProfileOut(CamelModel):
    id: int
    email: str
    name: str
    role: str
    created_at: Optional[datetime] = None


def _profile(user: User) -> ProfileOut:
    return ProfileOut(id=user.id, email=user.email, name=user.name, role=user.role, created_at=user.created_at)


def _session(user: User, tokens: TokenService) -> dict:
    return {
        "token": tokens.create_token(str(user.id), user.role),
        "user": _profile(user),
    }


@router.post("/register", status_code=201)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
    admin: User = Depends(require_admin),
):
    user = user_service.register_user(db, credentials, data.email, data.password, data.name, data.role.value)
    return envelope(_profile(user), "User registered successfully")


@router.post("/register-public", status_code=201)
def register_public(
    data: PublicRegisterRequest,
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
    tokens: TokenService = Depends(get_tokens),
):
    # Self sign-up always creates staff
    user = user_service.register_user(db, credentials, data.email, data.password, data.name, Role.staff.value)
    return envelope(_session(user, tokens), "Registration successful")


@router.post("/login")
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
    tokens: TokenService = Depends(get_tokens),
):
    user = user_service.login(db, credentials, data.email, data.password)
    return envelope(_session(user, tokens), "Login successful")


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return envelope(_profile(user))


@router.put("/password")
def change_password(
    data: PasswordChangeRequest,
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
    user: User = Depends(get_current_user),
):
    user_service.change_password(db, credentials, user, data.current_password, data.new_password)
    return envelope(message="Password updated successfully")
