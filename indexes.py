"""
Key layout and secondary-index records.

The store has no foreign keys, so per-user listings are backed by small link
records whose key starts with the owner's id. Link records and the primary
records they point to are written separately; readers must tolerate a link
whose target is gone.
"""

from typing import List

from database import KVStore


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def product_key(product_id: str) -> str:
    return f"product:{product_id}"


PRODUCT_PREFIX = "product:"


def review_prefix(product_id: str) -> str:
    return f"review:product:{product_id}:"


def review_key(product_id: str, review_id: str) -> str:
    return review_prefix(product_id) + review_id


def order_key(order_id: str) -> str:
    return f"order:{order_id}"


def order_index_prefix(user_id: str) -> str:
    return f"user:{user_id}:order:"


def order_index_key(user_id: str, order_id: str) -> str:
    return order_index_prefix(user_id) + order_id


def wishlist_prefix(user_id: str) -> str:
    return f"wishlist:{user_id}:"


def wishlist_key(user_id: str, product_id: str) -> str:
    return wishlist_prefix(user_id) + product_id


class IndexMaintainer:
    def __init__(self, store: KVStore):
        self.store = store

    # Orders

    def link_order(self, user_id: str, order_id: str) -> None:
        self.store.set(order_index_key(user_id, order_id), order_id)

    def order_ids(self, user_id: str) -> List[str]:
        return [v for v in self.store.values_with_prefix(order_index_prefix(user_id)) if isinstance(v, str)]

    # Wishlist

    def link_wishlist(self, user_id: str, product_id: str) -> None:
        self.store.set(wishlist_key(user_id, product_id), product_id)

    def unlink_wishlist(self, user_id: str, product_id: str) -> None:
        self.store.delete(wishlist_key(user_id, product_id))

    def wishlist_product_ids(self, user_id: str) -> List[str]:
        return [v for v in self.store.values_with_prefix(wishlist_prefix(user_id)) if isinstance(v, str)]
