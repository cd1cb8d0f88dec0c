# supplyhub/api/agent_api.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pymongo.database import Database

from supplyhub.api.deps import get_db, get_settings, require_agent
from supplyhub.app_config import Settings
from supplyhub.models.delivery_models import AssignmentStatusBody, CompleteDeliveryBody, Coordinates
from supplyhub.services.delivery_service import DeliveryService

router = APIRouter(prefix="/api/agent", tags=["agent"])


@router.get("/available-deliveries")
def available(user: Dict[str, Any] = Depends(require_agent), db: Database = Depends(get_db)):
    items = DeliveryService.list_available(db, user)
    return {"ok": True, "items": items, "total": len(items)}


@router.get("/my-deliveries")
def mine(user: Dict[str, Any] = Depends(require_agent), db: Database = Depends(get_db)):
    items = DeliveryService.list_for_agent(db, user)
    return {"ok": True, "items": items, "total": len(items)}


@router.post("/accept-delivery/{assignment_id}")
def accept(assignment_id: str, user: Dict[str, Any] = Depends(require_agent), db: Database = Depends(get_db)):
    return {"ok": True, "delivery": DeliveryService.accept(db, user, assignment_id)}


@router.put("/update-status/{assignment_id}")
def update_status(assignment_id: str, body: AssignmentStatusBody,
                  user: Dict[str, Any] = Depends(require_agent), db: Database = Depends(get_db)):
    return {"ok": True, "delivery": DeliveryService.update_status(db, user, assignment_id, body.status)}


@router.put("/update-location/{assignment_id}")
def update_location(assignment_id: str, body: Coordinates,
                    user: Dict[str, Any] = Depends(require_agent), db: Database = Depends(get_db)):
    delivery = DeliveryService.update_location(db, user, assignment_id, body.latitude, body.longitude)
    return {"ok": True, "delivery": delivery}


@router.api_route("/complete-delivery/{assignment_id}", methods=["PUT", "POST"])
def complete(assignment_id: str, body: CompleteDeliveryBody,
             user: Dict[str, Any] = Depends(require_agent),
             db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    delivery = DeliveryService.complete(db, settings, user, assignment_id, body.paymentStatus, body.notes)
    return {"ok": True, "delivery": delivery}
