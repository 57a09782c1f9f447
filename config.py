import os
from dataclasses import dataclass
from typing import Optional

TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUTHY


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    database_name: str = "storefront"
    kv_collection: str = "kv_store"
    store_timeout: float = 5.0
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    identity_timeout: float = 5.0
    strict_product_existence_check: bool = False
    enforce_order_transition_graph: bool = False
    log_level: str = "INFO"
    port: int = 8000


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        database_name=os.getenv("DATABASE_NAME", "storefront"),
        kv_collection=os.getenv("KV_COLLECTION", "kv_store"),
        store_timeout=_env_float("STORE_TIMEOUT", 5.0),
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
        identity_timeout=_env_float("IDENTITY_TIMEOUT", 5.0),
        strict_product_existence_check=_env_flag("STRICT_PRODUCT_EXISTENCE_CHECK"),
        enforce_order_transition_graph=_env_flag("ENFORCE_ORDER_TRANSITION_GRAPH"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", 8000)),
    )
