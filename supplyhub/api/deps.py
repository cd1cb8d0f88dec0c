# supplyhub/api/deps.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from supplyhub.app_config import Settings
from supplyhub.errors import Unauthenticated
from supplyhub.identity import Identity, IdentityVerifier
from supplyhub.models.status import UserRole
from supplyhub.services.user_service import UserService

# --- one HTTPBearer scheme for every router (docs will show a lock) ---
bearer = HTTPBearer(scheme_name="IdToken", bearerFormat="JWT", auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.verifier


def auth_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer),
    verifier: IdentityVerifier = Depends(get_verifier),
) -> Identity:
    if not credentials or (credentials.scheme or "").lower() != "bearer":
        raise Unauthenticated("No token provided")
    return verifier.verify(credentials.credentials.strip())


def current_user(
    identity: Identity = Depends(auth_identity),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    return UserService.get_by_identity(db, identity)


def _role_guard(role: UserRole):
    def guard(user: Dict[str, Any] = Depends(current_user)) -> Dict[str, Any]:
        UserService.require_role(user, role)
        return user
    return guard


require_distributor = _role_guard(UserRole.DISTRIBUTOR)
require_vendor = _role_guard(UserRole.STREET_VENDOR)
require_agent = _role_guard(UserRole.DELIVERY_AGENT)
