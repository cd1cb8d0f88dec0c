# supplyhub/api/auth_api.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pymongo.database import Database

from supplyhub.api.deps import auth_identity, current_user, get_db
from supplyhub.identity import Identity
from supplyhub.models.user_models import RegisterBody
from supplyhub.services.user_service import UserService

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/auth/register")
def register(
    body: RegisterBody,
    response: Response,
    identity: Identity = Depends(auth_identity),
    db: Database = Depends(get_db),
):
    user, created = UserService.register_or_fetch(db, identity, body)
    response.status_code = 201 if created else 200
    return {"ok": True, "created": created, "user": UserService.public(user)}


@router.post("/auth/login")
def login(identity: Identity = Depends(auth_identity), db: Database = Depends(get_db)):
    # no local user yet -> 404 with needsRegistration so the client opens sign-up
    user = UserService.get_by_identity(db, identity)
    return {"ok": True, "user": UserService.public(user)}


@router.get("/users/me")
def me(user: Dict[str, Any] = Depends(current_user)):
    return {"ok": True, "user": UserService.public(user)}
