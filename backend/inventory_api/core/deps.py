import logging
from typing import Callable, Iterable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from inventory_api.core.config import Settings
from inventory_api.core.database import get_db
from inventory_api.core.errors import DeactivatedAccount, Forbidden, InvalidToken, NoToken, UnknownSubject
from inventory_api.core.roles import ADMIN_ROLES, STOCK_ROLES, Role
from inventory_api.core.security import CredentialService, TokenService
from inventory_api.models.user import User


logger = logging.getLogger(__name__)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_credentials(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_blob_store(request: Request):
    return request.app.state.blob_store


def authenticate(db: Session, tokens: TokenService, authorization: Optional[str]) -> User:
    """Resolve a bearer header to an active user, or raise the specific Unauthenticated cause."""
    if not authorization or not authorization.startswith("Bearer "):
        raise NoToken()
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise NoToken()

    payload = tokens.decode_token(token)
    if payload.get("type") != "access":
        raise InvalidToken()
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise InvalidToken()

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnknownSubject()
    if not user.is_active:
        raise DeactivatedAccount()
    return user


def get_current_user(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    authorization: Optional[str] = Header(None),
) -> User:
    return authenticate(db, tokens, authorization)


def require_role(user: User, allowed: Iterable[Role]) -> None:
    if user.role not in {r.value for r in allowed}:
        raise Forbidden("Access denied. Insufficient role.")


def require_roles(*roles: Role) -> Callable[..., User]:
    def dependency(user: User = Depends(get_current_user)) -> User:
        require_role(user, roles)
        return user

    return dependency


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role not in {r.value for r in ADMIN_ROLES}:
        raise Forbidden("Access denied. Admin privileges required.")
    return user


require_staff_or_admin = require_roles(*STOCK_ROLES)
