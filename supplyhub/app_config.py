# supplyhub/app_config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)


def _env_float(name: str) -> Optional[float]:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    mongo_uri: str = "mongodb://localhost:27017/street_supply"
    mongo_transactions: bool = False

    identity_project_id: str = ""
    identity_jwks_url: str = DEFAULT_JWKS_URL
    identity_shared_secret: str = ""

    delivery_base_fee: Decimal = Decimal("5.00")
    delivery_fee_per_km: Decimal = Decimal("1.00")
    agent_speed_kmh: float = 25.0
    default_pickup_lat: Optional[float] = None
    default_pickup_lon: Optional[float] = None

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def identity_issuer(self) -> str:
        if not self.identity_project_id:
            return ""
        return f"https://securetoken.google.com/{self.identity_project_id}"


def load_settings() -> Settings:
    """
    Load all configuration from the environment in one place.
    """
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    settings = Settings(
        mongo_uri=os.getenv("MONGO_URI", Settings.mongo_uri),
        mongo_transactions=os.getenv("MONGO_TRANSACTIONS", "0") == "1",
        identity_project_id=os.getenv("IDENTITY_PROJECT_ID") or os.getenv("FIREBASE_PROJECT_ID", ""),
        identity_jwks_url=os.getenv("IDENTITY_JWKS_URL", DEFAULT_JWKS_URL),
        identity_shared_secret=os.getenv("IDENTITY_SHARED_SECRET", ""),
        delivery_base_fee=Decimal(os.getenv("DELIVERY_BASE_FEE", "5.00")),
        delivery_fee_per_km=Decimal(os.getenv("DELIVERY_FEE_PER_KM", "1.00")),
        agent_speed_kmh=float(os.getenv("AGENT_SPEED_KMH", "25")),
        default_pickup_lat=_env_float("DEFAULT_PICKUP_LAT"),
        default_pickup_lon=_env_float("DEFAULT_PICKUP_LON"),
        cors_origins=origins or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    logger.info("Config loaded (transactions=%s, project=%s)",
                settings.mongo_transactions, settings.identity_project_id or "-")
    return settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
