"""Document store: filter matching, updates, and the conditional update used for counters."""
import pytest

from goldencrust.catalog.infrastructure import IProductRepository
from goldencrust.core.errors import Conflict, NotFound
from goldencrust.orders.infrastructure import IOrderRepository
from goldencrust.partners.domain import CustomerGroup
from goldencrust.partners.infrastructure import ICustomerGroupRepository
from goldencrust.store import InMemoryDocumentStore
from goldencrust.store.matching import apply_update, matches
from goldencrust.store.mongo import database_name_from_uri

from conftest import ADMIN


class TestMatching:
    def test_equality_and_missing_field(self):
        doc = {"_id": "a", "name": "Croissant", "category_id": None}
        assert matches(doc, {"name": "Croissant"})
        assert matches(doc, {"category_id": None})
        assert matches(doc, {"usage_limit": None})
        assert not matches(doc, {"name": "Eclair"})

    def test_array_membership(self):
        doc = {"tags": ["bread", "vegan"]}
        assert matches(doc, {"tags": "vegan"})
        assert not matches(doc, {"tags": "cake"})

    def test_comparison_operators(self):
        doc = {"min_quantity": 50, "used_count": 2}
        assert matches(doc, {"min_quantity": {"$lte": 60}})
        assert not matches(doc, {"min_quantity": {"$lte": 49}})
        assert matches(doc, {"used_count": {"$lt": 3, "$gte": 2}})
        assert not matches(doc, {"missing": {"$gt": 0}})

    def test_in_nin_exists(self):
        doc = {"status": "pending"}
        assert matches(doc, {"status": {"$in": ["pending", "processing"]}})
        assert matches(doc, {"status": {"$nin": ["cancelled"]}})
        assert matches(doc, {"status": {"$exists": True}})
        assert matches(doc, {"notes": {"$exists": False}})

    def test_and_or(self):
        doc = {"a": 1, "b": 2}
        assert matches(doc, {"$or": [{"a": 5}, {"b": 2}]})
        assert not matches(doc, {"$and": [{"a": 1}, {"b": 3}]})

    def test_apply_update_does_not_mutate_input(self):
        doc = {"_id": "a", "stock": 5, "name": "x"}
        updated = apply_update(doc, {"$inc": {"stock": -2}, "$set": {"name": "y"}, "$unset": {"missing": ""}})
        assert updated["stock"] == 3
        assert updated["name"] == "y"
        assert doc["stock"] == 5


class TestInMemoryDocumentStore:
    async def test_insert_and_find(self):
        store = InMemoryDocumentStore()
        await store.insert_one("products", {"_id": "p1", "name": "Sourdough"})
        assert (await store.find_one("products", {"_id": "p1"}))["name"] == "Sourdough"
        assert await store.find("products", {"name": "Nope"}) == []

    async def test_duplicate_id_is_a_conflict(self):
        store = InMemoryDocumentStore()
        await store.insert_one("products", {"_id": "p1"})
        with pytest.raises(Conflict):
            await store.insert_one("products", {"_id": "p1"})

    async def test_returned_documents_are_copies(self):
        store = InMemoryDocumentStore()
        await store.insert_one("products", {"_id": "p1", "tags": ["a"]})
        doc = await store.find_one("products", {"_id": "p1"})
        doc["tags"].append("b")
        assert (await store.find_one("products", {"_id": "p1"}))["tags"] == ["a"]

    async def test_conditional_update_respects_predicate(self):
        store = InMemoryDocumentStore()
        await store.insert_one("discounts", {"_id": "d1", "used_count": 0, "usage_limit": 1})
        first = await store.update_one(
            "discounts", {"_id": "d1", "used_count": {"$lt": 1}}, {"$inc": {"used_count": 1}}
        )
        second = await store.update_one(
            "discounts", {"_id": "d1", "used_count": {"$lt": 1}}, {"$inc": {"used_count": 1}}
        )
        assert first["used_count"] == 1
        assert second is None
        assert (await store.find_one("discounts", {"_id": "d1"}))["used_count"] == 1

    async def test_replace_and_delete(self):
        store = InMemoryDocumentStore()
        await store.insert_one("c", {"_id": "x", "v": 1})
        assert await store.replace_one("c", {"_id": "x"}, {"_id": "x", "v": 2})
        assert (await store.find_one("c", {"_id": "x"}))["v"] == 2
        assert await store.delete_one("c", {"_id": "x"})
        assert not await store.delete_one("c", {"_id": "x"})

    async def test_unique_field_on_insert_update_and_replace(self):
        store = InMemoryDocumentStore()
        await store.ensure_unique("products", "sku")
        await store.insert_one("products", {"_id": "p1", "sku": "BRD-RYE"})
        await store.insert_one("products", {"_id": "p2", "sku": "BRD-BAG"})

        with pytest.raises(Conflict):
            await store.insert_one("products", {"_id": "p3", "sku": "BRD-RYE"})
        with pytest.raises(Conflict):
            await store.update_one("products", {"_id": "p2"}, {"$set": {"sku": "BRD-RYE"}})
        with pytest.raises(Conflict):
            await store.replace_one("products", {"_id": "p2"}, {"_id": "p2", "sku": "BRD-RYE"})

        assert (await store.find_one("products", {"_id": "p2"}))["sku"] == "BRD-BAG"
        assert await store.update_one("products", {"_id": "p1"}, {"$set": {"name": "Rye"}}) is not None

    async def test_missing_unique_values_do_not_collide(self):
        store = InMemoryDocumentStore()
        await store.ensure_unique("customer_groups", "name")
        await store.insert_one("customer_groups", {"_id": "g1"})
        await store.insert_one("customer_groups", {"_id": "g2", "name": None})
        assert len(await store.find("customer_groups")) == 2


class TestMongoUri:
    def test_database_from_uri(self):
        assert database_name_from_uri("mongodb://localhost:27017/bakery?retryWrites=true") == "bakery"

    def test_default_database(self):
        assert database_name_from_uri("mongodb://localhost:27017") == "goldencrust"
        assert database_name_from_uri("mongodb://localhost:27017/") == "goldencrust"


class TestRepositoryRequire:
    async def test_missing_entity_names_its_kind(self, container):
        with pytest.raises(NotFound) as excinfo:
            await container.resolve(IOrderRepository).require("ORD-missing")
        assert excinfo.value.message == "order 'ORD-missing' not found"

    async def test_returns_the_entity(self, container, factory):
        product = await factory.product()
        assert (await container.resolve(IProductRepository).require(product.id)).sku == product.sku


class TestCustomerGroupNames:
    async def test_name_is_unique_in_the_store(self, container):
        groups = container.resolve(ICustomerGroupRepository)
        await groups.add(CustomerGroup(id="g1", name="wholesale"))
        with pytest.raises(Conflict):
            await groups.add(CustomerGroup(id="g2", name="wholesale"))
        assert [g.id for g in await groups.list_all()] == ["g1"]

    def test_duplicate_over_http_is_409(self, client):
        first = client.post("/api/customer-groups", json={"name": "horeca"}, headers=ADMIN)
        second = client.post("/api/customer-groups", json={"name": " horeca "}, headers=ADMIN)
        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "conflict"
