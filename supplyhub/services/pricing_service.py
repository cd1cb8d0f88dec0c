# supplyhub/services/pricing_service.py

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from supplyhub.app_config import Settings
from supplyhub.models.money import CENT

EARTH_RADIUS_KM = 6371.0088

LatLon = Tuple[float, float]


@dataclass(frozen=True)
class DeliveryQuote:
    fee: str
    distance_km: Optional[float]
    minutes: Optional[int]


def haversine_km(a: LatLon, b: LatLon) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat, dlon = lat2 - lat1, lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def quote(settings: Settings, pickup: Optional[LatLon], dropoff: Optional[LatLon]) -> DeliveryQuote:
    """
    Base fee plus a per-km component when both ends are known.
    Without coordinates only the base fee applies.
    """
    base = Decimal(settings.delivery_base_fee)
    if not pickup or not dropoff:
        return DeliveryQuote(fee=str(base.quantize(CENT)), distance_km=None, minutes=None)

    km = round(haversine_km(pickup, dropoff), 2)
    fee = (base + Decimal(settings.delivery_fee_per_km) * Decimal(str(km))).quantize(CENT, rounding=ROUND_HALF_UP)
    minutes = math.ceil(km / settings.agent_speed_kmh * 60) if settings.agent_speed_kmh > 0 else None
    return DeliveryQuote(fee=str(fee), distance_km=km, minutes=minutes)
