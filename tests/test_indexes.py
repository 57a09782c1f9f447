"""Tests for key layout and index records."""

from database import MemoryKVStore
from indexes import IndexMaintainer, order_index_key, review_key, user_key, wishlist_key


def test_key_layout():
    assert user_key("u1") == "user:u1"
    assert order_index_key("u1", "ORDER-1") == "user:u1:order:ORDER-1"
    assert review_key("p1", "r1") == "review:product:p1:r1"
    assert wishlist_key("u1", "p1") == "wishlist:u1:p1"


def test_order_links_are_scoped_to_owner():
    store = MemoryKVStore()
    indexes = IndexMaintainer(store)
    indexes.link_order("u1", "ORDER-a")
    indexes.link_order("u1", "ORDER-b")
    indexes.link_order("u2", "ORDER-c")
    assert indexes.order_ids("u1") == ["ORDER-a", "ORDER-b"]
    assert indexes.order_ids("u2") == ["ORDER-c"]


def test_profile_record_is_not_an_order_link():
    store = MemoryKVStore({"user:u1": {"id": "u1"}})
    assert IndexMaintainer(store).order_ids("u1") == []


def test_wishlist_link_is_idempotent():
    indexes = IndexMaintainer(MemoryKVStore())
    indexes.link_wishlist("u1", "p1")
    indexes.link_wishlist("u1", "p1")
    assert indexes.wishlist_product_ids("u1") == ["p1"]
    indexes.unlink_wishlist("u1", "p1")
    indexes.unlink_wishlist("u1", "p1")
    assert indexes.wishlist_product_ids("u1") == []
