import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Header, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog import ProductFilter
from config import Settings, load_settings
from database import create_store
from errors import StorefrontError, ValidationError
from identity import Identity, IdentityGate, create_identity_provider
from schemas import OrderPayload, ReviewPayload, SignupPayload
from service import StorefrontService

logger = logging.getLogger(__name__)

router = APIRouter()


# Helpers
def get_service(request: Request) -> StorefrontService:
    return request.app.state.service


def current_identity(
    authorization: Optional[str] = Header(None),
    service: StorefrontService = Depends(get_service),
) -> Identity:
    return service.gate.authenticate(authorization)


def _flag(value: Optional[str]) -> Optional[bool]:
    # only the literal "true" turns a flag filter on
    if value is not None and value.strip().lower() == "true":
        return True
    return None


def _number(name: str, value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError(f"Invalid {name}")


@router.get("/")
def read_root():
    return {"message": "Storefront API running"}


@router.get("/health")
def health(service: StorefrontService = Depends(get_service)):
    return service.health()


@router.post("/init-data")
def init_data(service: StorefrontService = Depends(get_service)):
    service.seed_catalog()
    return {"success": True, "message": "Sample data initialized"}


# Auth
@router.post("/auth/signup")
def signup(payload: SignupPayload, service: StorefrontService = Depends(get_service)):
    user = service.signup(payload)
    return {"success": True, "user": user}


# Users
@router.get("/user/profile")
def get_profile(identity: Identity = Depends(current_identity), service: StorefrontService = Depends(get_service)):
    return {"user": service.get_profile(identity)}


@router.put("/user/profile")
def update_profile(
    updates: Dict[str, Any] = Body(...),
    identity: Identity = Depends(current_identity),
    service: StorefrontService = Depends(get_service),
):
    return {"user": service.update_profile(identity, updates)}


# Products
@router.get("/products")
def list_products(
    category: Optional[str] = None,
    brand: Optional[str] = None,
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    in_stock: Optional[str] = Query(None, alias="inStock"),
    featured: Optional[str] = None,
    trending: Optional[str] = None,
    new_arrival: Optional[str] = Query(None, alias="newArrival"),
    search: Optional[str] = None,
    service: StorefrontService = Depends(get_service),
):
    criteria = ProductFilter(
        category=category or None,
        brand=brand or None,
        min_price=_number("minPrice", min_price),
        max_price=_number("maxPrice", max_price),
        in_stock=_flag(in_stock),
        featured=_flag(featured),
        trending=_flag(trending),
        new_arrival=_flag(new_arrival),
        search_text=search or None,
    )
    return {"products": service.list_products(criteria)}


@router.get("/products/{product_id}")
def get_product(product_id: str, service: StorefrontService = Depends(get_service)):
    return {"product": service.get_product(product_id)}


# Reviews
@router.post("/products/{product_id}/reviews")
def add_review(
    product_id: str,
    payload: ReviewPayload,
    identity: Identity = Depends(current_identity),
    service: StorefrontService = Depends(get_service),
):
    return {"review": service.add_review(identity, product_id, payload)}


# Orders
@router.post("/orders")
def create_order(
    payload: OrderPayload,
    identity: Identity = Depends(current_identity),
    service: StorefrontService = Depends(get_service),
):
    return {"order": service.create_order(identity, payload)}


@router.get("/user/orders")
def list_orders(identity: Identity = Depends(current_identity), service: StorefrontService = Depends(get_service)):
    return {"orders": service.list_orders(identity)}


@router.get("/orders/{order_id}")
def get_order(
    order_id: str,
    identity: Identity = Depends(current_identity),
    service: StorefrontService = Depends(get_service),
):
    return {"order": service.get_order(identity, order_id)}


# Wishlist
@router.get("/user/wishlist")
def list_wishlist(identity: Identity = Depends(current_identity), service: StorefrontService = Depends(get_service)):
    return {"wishlist": service.list_wishlist(identity)}


@router.post("/user/wishlist/{product_id}")
def add_to_wishlist(
    product_id: str,
    identity: Identity = Depends(current_identity),
    service: StorefrontService = Depends(get_service),
):
    service.add_to_wishlist(identity, product_id)
    return {"success": True}


@router.delete("/user/wishlist/{product_id}")
def remove_from_wishlist(
    product_id: str,
    identity: Identity = Depends(current_identity),
    service: StorefrontService = Depends(get_service),
):
    service.remove_from_wishlist(identity, product_id)
    return {"success": True}


def build_service(settings: Settings) -> StorefrontService:
    store = create_store(settings)
    gate = IdentityGate(create_identity_provider(settings))
    return StorefrontService(store, gate, settings)


def create_app(service: Optional[StorefrontService] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Storefront API")
    app.state.service = service or build_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed)
        return response

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
