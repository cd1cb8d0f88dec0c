# supplyhub/errors.py
from __future__ import annotations

from typing import Any, Dict


class DomainError(Exception):
    """Base for every error a service raises; carries its HTTP status."""

    status_code = 500

    def __init__(self, message: str = "Request failed"):
        super().__init__(message)
        self.message = message

    def payload(self) -> Dict[str, Any]:
        return {"ok": False, "message": self.message}


class Unauthenticated(DomainError):
    status_code = 401


class Forbidden(DomainError):
    status_code = 403


class NotFound(DomainError):
    status_code = 404


class NeedsRegistration(NotFound):
    """Valid identity, but no local user yet; the client routes to sign-up."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)

    def payload(self) -> Dict[str, Any]:
        return {**super().payload(), "needsRegistration": True}


class ValidationFailed(DomainError):
    status_code = 400


class Conflict(DomainError):
    status_code = 409


class InvalidTransition(Conflict):
    def __init__(self, kind: str, current: str, target: str):
        super().__init__(f"Cannot move {kind} from '{current}' to '{target}'")
        self.current = current
        self.target = target
