# supplyhub/models/delivery_models.py

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from supplyhub.models.status import DeliveryStatus, PaymentMethod


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class CreateAssignmentBody(BaseModel):
    orderId: str = Field(..., min_length=1)
    pickupLatitude: Optional[float] = Field(None, ge=-90, le=90)
    pickupLongitude: Optional[float] = Field(None, ge=-180, le=180)
    deliveryLatitude: Optional[float] = Field(None, ge=-90, le=90)
    deliveryLongitude: Optional[float] = Field(None, ge=-180, le=180)
    paymentMethod: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _pairs(self):
        if (self.pickupLatitude is None) != (self.pickupLongitude is None):
            raise ValueError("pickupLatitude and pickupLongitude go together")
        if (self.deliveryLatitude is None) != (self.deliveryLongitude is None):
            raise ValueError("deliveryLatitude and deliveryLongitude go together")
        return self


class AssignmentStatusBody(BaseModel):
    status: DeliveryStatus


class CompleteDeliveryBody(BaseModel):
    paymentStatus: Literal["paid", "failed"]
    notes: Optional[str] = None
