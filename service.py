"""
Resource handlers.

StorefrontService composes the key-value store, the identity gate and the
catalog engine. Every public method either returns a JSON-ready document or
raises one of the errors in errors.py; collaborator failures are classified
in `classified()` so nothing raw escapes.

Multi-key writes (order + owner index, profile after credential) are two
independent store calls. There is no compensation when the second one fails;
listings skip links whose target record is missing instead.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from catalog import ProductFilter, filter_products
from config import Settings
from database import KVStore, StoreTimeout
from errors import Forbidden, NotFound, StorefrontError, Timeout, Unexpected, ValidationError
from identity import Identity, IdentityGate
from indexes import (
    PRODUCT_PREFIX,
    IndexMaintainer,
    order_key,
    product_key,
    review_key,
    review_prefix,
    user_key,
)
from schemas import (
    ORDER_STATUSES,
    Order,
    OrderPayload,
    Product,
    PublicUser,
    Review,
    ReviewPayload,
    SignupPayload,
    UserProfile,
    parse_iso,
    to_iso,
)
from seed import sample_products

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}

EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@contextmanager
def classified(operation: str):
    try:
        yield
    except StorefrontError:
        raise
    except StoreTimeout as e:
        logger.error("Store timed out during %s: %s", operation, e)
        raise Timeout("Store timed out") from e
    except Exception as e:
        logger.exception("Unexpected error during %s", operation)
        raise Unexpected() from e


def _created_at(order: Dict[str, Any]) -> datetime:
    try:
        return parse_iso(order["createdAt"])
    except (KeyError, TypeError, ValueError):
        return EPOCH


class StorefrontService:
    def __init__(
        self,
        store: KVStore,
        gate: IdentityGate,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.gate = gate
        self.settings = settings or Settings()
        self.indexes = IndexMaintainer(store)
        self.clock = clock

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), timezone.utc)

    def _millis(self) -> int:
        return int(self.clock() * 1000)

    @staticmethod
    def _suffix() -> str:
        return uuid.uuid4().hex[:6]

    # -----------------------------
    # Health / seed
    # -----------------------------

    def health(self) -> Dict[str, Any]:
        return {"status": "healthy", "timestamp": to_iso(self._now())}

    def seed_catalog(self) -> int:
        with classified("seed catalog"):
            products = [Product.model_validate(p) for p in sample_products(self._now())]
            for product in products:
                self.store.set(product_key(product.id), product.to_document(exclude_none=True))
        logger.info("Seeded %d sample products", len(products))
        return len(products)

    # -----------------------------
    # Users
    # -----------------------------

    def signup(self, payload: SignupPayload) -> Dict[str, Any]:
        if not (payload.email and payload.password and payload.name):
            raise ValidationError("Missing required fields")
        identity = self.gate.create_credential(payload.email, payload.password, payload.name)
        profile = UserProfile(
            id=identity.id,
            email=identity.email or payload.email,
            name=identity.name or payload.name,
            addresses=[],
            created_at=to_iso(self._now()),
        )
        with classified("signup"):
            self.store.set(user_key(identity.id), profile.to_document())
        logger.info("Created profile for user %s", identity.id)
        return PublicUser(id=profile.id, email=profile.email, name=profile.name).to_document()

    def get_profile(self, identity: Identity) -> Dict[str, Any]:
        with classified("get profile"):
            profile = self.store.get(user_key(identity.id))
        if not profile:
            raise NotFound("User not found")
        return profile

    def update_profile(self, identity: Identity, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow merge: supplied keys win (explicit null included), omitted keys are kept."""
        if not isinstance(updates, dict):
            raise ValidationError("Profile update must be an object")
        with classified("update profile"):
            existing = self.store.get(user_key(identity.id))
            if not existing:
                raise NotFound("User not found")
            updated = {**existing, **updates, "id": identity.id}
            self.store.set(user_key(identity.id), updated)
        return updated

    # -----------------------------
    # Products
    # -----------------------------

    def list_products(self, criteria: Optional[ProductFilter] = None) -> List[Dict[str, Any]]:
        with classified("list products"):
            products = [p for p in self.store.values_with_prefix(PRODUCT_PREFIX) if isinstance(p, dict)]
        return filter_products(products, criteria)

    def get_product(self, product_id: str) -> Dict[str, Any]:
        with classified("get product"):
            product = self.store.get(product_key(product_id))
            if not product:
                raise NotFound("Product not found")
            reviews = self.store.values_with_prefix(review_prefix(product_id))
        return {**product, "reviews": reviews}

    def add_review(self, identity: Identity, product_id: str, payload: ReviewPayload) -> Dict[str, Any]:
        rating = payload.rating
        if rating is None or isinstance(rating, bool) or not 1 <= rating <= 5:
            raise ValidationError("Invalid rating")
        with classified("add review"):
            if self.settings.strict_product_existence_check and not self.store.get(product_key(product_id)):
                raise NotFound("Product not found")
            profile = self.store.get(user_key(identity.id)) or {}
            review = Review(
                id=f"{self._millis()}-{identity.id}-{self._suffix()}",
                product_id=product_id,
                user_id=identity.id,
                # snapshot; later profile renames do not touch old reviews
                user_name=profile.get("name") or "Anonymous",
                rating=rating,
                comment=payload.comment or "",
                # purchase is not checked; every review is marked verified
                verified=True,
                created_at=to_iso(self._now()),
            )
            document = review.to_document()
            self.store.set(review_key(product_id, review.id), document)
        return document

    # -----------------------------
    # Orders
    # -----------------------------

    def create_order(self, identity: Identity, payload: OrderPayload) -> Dict[str, Any]:
        if not payload.items or payload.shipping_address is None or not payload.payment_method:
            raise ValidationError("Missing required order information")
        now = to_iso(self._now())
        order = Order(
            id=f"ORDER-{self._millis()}-{identity.id[:8]}-{self._suffix()}",
            user_id=identity.id,
            items=list(payload.items),
            shipping_address=payload.shipping_address.to_document(exclude_unset=True),
            payment_method=payload.payment_method,
            total=payload.total,
            status="pending",
            created_at=now,
            updated_at=now,
        )
        document = order.to_document()
        with classified("create order"):
            self.store.set(order_key(order.id), document)
            # not atomic with the write above; list_orders misses the order until this lands
            self.indexes.link_order(identity.id, order.id)
        logger.info("Created order %s for user %s", order.id, identity.id)
        return document

    def list_orders(self, identity: Identity) -> List[Dict[str, Any]]:
        orders = []
        with classified("list orders"):
            for order_id in self.indexes.order_ids(identity.id):
                order = self.store.get(order_key(order_id))
                if not order or order.get("userId") != identity.id:
                    logger.debug("Skipping dangling order link %s for user %s", order_id, identity.id)
                    continue
                orders.append(order)
        orders.sort(key=_created_at, reverse=True)
        return orders

    def get_order(self, identity: Identity, order_id: str) -> Dict[str, Any]:
        with classified("get order"):
            order = self.store.get(order_key(order_id))
        if not order:
            raise NotFound("Order not found")
        if order.get("userId") != identity.id:
            raise Forbidden()
        return order

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        """Fulfillment hook. Transition legality is only checked when enforce_order_transition_graph is on."""
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {status}")
        with classified("update order status"):
            order = self.store.get(order_key(order_id))
            if not order:
                raise NotFound("Order not found")
            current = order.get("status")
            if self.settings.enforce_order_transition_graph and status not in ORDER_TRANSITIONS.get(current, set()):
                raise ValidationError(f"Cannot move order from {current} to {status}")
            order = {**order, "status": status, "updatedAt": to_iso(self._now())}
            self.store.set(order_key(order_id), order)
        logger.info("Order %s moved from %s to %s", order_id, current, status)
        return order

    # -----------------------------
    # Wishlist
    # -----------------------------

    def list_wishlist(self, identity: Identity) -> List[Dict[str, Any]]:
        products = []
        with classified("list wishlist"):
            for product_id in self.indexes.wishlist_product_ids(identity.id):
                product = self.store.get(product_key(product_id))
                if not product:
                    logger.debug("Skipping dangling wishlist link %s for user %s", product_id, identity.id)
                    continue
                products.append(product)
        return products

    def add_to_wishlist(self, identity: Identity, product_id: str) -> None:
        with classified("add to wishlist"):
            if not self.store.get(product_key(product_id)):
                raise NotFound("Product not found")
            self.indexes.link_wishlist(identity.id, product_id)

    def remove_from_wishlist(self, identity: Identity, product_id: str) -> None:
        with classified("remove from wishlist"):
            self.indexes.unlink_wishlist(identity.id, product_id)
