# supplyhub/api/tracking_api.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from pymongo.database import Database

from supplyhub.api.deps import get_db
from supplyhub.services.delivery_service import DeliveryService

router = APIRouter(prefix="/api/tracking", tags=["tracking"])


# public by id: no bearer token required
@router.get("/{assignment_id}")
def tracking(assignment_id: str, db: Database = Depends(get_db)):
    return {"ok": True, "tracking": DeliveryService.tracking(db, assignment_id)}
