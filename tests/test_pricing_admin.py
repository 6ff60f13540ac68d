"""Price list and discount maintenance over HTTP."""
from datetime import timedelta
from decimal import Decimal

import pytest

from goldencrust.pricing.application import UpdateDiscount, UpdateDiscountHandler
from goldencrust.pricing.domain import ApplicationType, DiscountConditions, DiscountType
from goldencrust.pricing.infrastructure import IDiscountRepository, IPriceListRepository

from conftest import ADMIN, NOW, SALES


def window(days_before=1, days_after=30):
    return {
        "valid_from": (NOW - timedelta(days=days_before)).isoformat(),
        "valid_to": (NOW + timedelta(days=days_after)).isoformat(),
    }


class TestPriceListEditing:
    async def test_null_clears_window_and_group(self, client, container, factory):
        price_list = await factory.price_list(
            customer_group="wholesale",
            valid_from=NOW - timedelta(days=5),
            valid_to=NOW + timedelta(days=5),
            discount_percentage=Decimal("10"),
        )

        response = client.patch(
            f"/api/price-lists/{price_list.id}",
            json={"valid_to": None, "customer_group": None},
            headers=SALES,
        )

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["valid_to"] is None
        assert result["customer_group"] is None
        stored = await container.resolve(IPriceListRepository).get(price_list.id)
        assert (stored.valid_to, stored.customer_group) == (None, None)
        assert stored.valid_from == NOW - timedelta(days=5)
        assert stored.discount_percentage == Decimal("10")

    async def test_absent_fields_are_left_alone(self, client, container, factory):
        price_list = await factory.price_list(customer_group="wholesale")
        client.patch(f"/api/price-lists/{price_list.id}", json={"description": "weekday rates"}, headers=SALES)
        stored = await container.resolve(IPriceListRepository).get(price_list.id)
        assert (stored.description, stored.customer_group) == ("weekday rates", "wholesale")

    async def test_name_cannot_be_null(self, client, factory):
        price_list = await factory.price_list()
        response = client.patch(f"/api/price-lists/{price_list.id}", json={"name": None}, headers=SALES)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    async def test_window_checked_against_stored_dates(self, client, factory):
        price_list = await factory.price_list(valid_from=NOW)
        response = client.patch(
            f"/api/price-lists/{price_list.id}",
            json={"valid_to": (NOW - timedelta(days=1)).isoformat()},
            headers=SALES,
        )
        assert response.status_code == 400

    async def test_delete_only_deactivates(self, client, container, factory):
        price_list = await factory.price_list()

        response = client.delete(f"/api/price-lists/{price_list.id}", headers=ADMIN)

        assert response.json()["result"] == {"id": price_list.id, "is_active": False}
        stored = await container.resolve(IPriceListRepository).get(price_list.id)
        assert stored is not None and stored.is_active is False
        assert client.get("/api/price-lists/active").json() == []


class TestActivePriceLists:
    async def test_customer_group_filter(self, client, factory):
        everyone = await factory.price_list("Retail")
        wholesale = await factory.price_list("Wholesale", customer_group="wholesale")
        await factory.price_list("Hotels", customer_group="horeca")
        await factory.price_list("Expired", valid_to=NOW - timedelta(days=1))

        all_live = {p["name"] for p in client.get("/api/price-lists/active").json()}
        for_wholesale = client.get("/api/price-lists/active", params={"customer_group": "wholesale"}).json()

        assert all_live == {"Retail", "Wholesale", "Hotels"}
        assert {p["id"] for p in for_wholesale} == {everyone.id, wholesale.id}


class TestDiscountEditing:
    async def test_patch_changes_only_sent_fields(self, client, container, factory):
        discount = await factory.discount(target_ids=frozenset({"p1"}), usage_limit=50)

        response = client.patch(f"/api/discounts/{discount.id}", json={"value": "25", "name": "Summer25"}, headers=SALES)

        assert response.status_code == 200
        stored = await container.resolve(IDiscountRepository).get(discount.id)
        assert (stored.name, stored.value, stored.usage_limit) == ("Summer25", Decimal("25"), 50)

    async def test_null_usage_limit_makes_it_unlimited(self, client, container, factory):
        discount = await factory.discount(target_ids=frozenset({"p1"}), usage_limit=10, used_count=10)

        response = client.patch(f"/api/discounts/{discount.id}", json={"usage_limit": None}, headers=SALES)

        assert response.status_code == 200
        assert response.json()["result"]["usage_limit"] is None
        stored = await container.resolve(IDiscountRepository).get(discount.id)
        assert stored.usage_limit is None
        assert stored.has_capacity

    async def test_admin_corrects_used_count(self, client, container, factory):
        discount = await factory.discount(target_ids=frozenset({"p1"}), usage_limit=10, used_count=7)

        response = client.patch(f"/api/discounts/{discount.id}", json={"used_count": 2}, headers=ADMIN)

        assert response.json()["result"]["used_count"] == 2
        assert (await container.resolve(IDiscountRepository).get(discount.id)).used_count == 2

    async def test_regular_save_keeps_redemptions(self, container, factory):
        discount = await factory.discount(target_ids=frozenset({"p1"}), usage_limit=10)
        repository = container.resolve(IDiscountRepository)
        stale = await repository.get(discount.id)
        await repository.redeem(discount)
        await repository.redeem(discount)

        stale.description = "edited while orders were coming in"
        await repository.save(stale)

        stored = await repository.get(discount.id)
        assert stored.used_count == 2
        assert stored.description == "edited while orders were coming in"

    async def test_edit_without_used_count_keeps_counter(self, container, factory):
        discount = await factory.discount(target_ids=frozenset({"p1"}), used_count=4)
        result = await container.resolve(UpdateDiscountHandler)(UpdateDiscount(discount_id=discount.id, name="Renamed"))
        assert result["used_count"] == 4

    async def test_delete_only_deactivates(self, client, container, factory):
        discount = await factory.discount(target_ids=frozenset({"p1"}))

        response = client.delete(f"/api/discounts/{discount.id}", headers=ADMIN)

        assert response.json()["result"] == {"id": discount.id, "is_active": False}
        stored = await container.resolve(IDiscountRepository).get(discount.id)
        assert stored is not None and stored.is_active is False
        assert client.get("/api/discounts/active").json() == []


class TestDiscountRules:
    def create(self, client, **body):
        body.setdefault("name", "Promo")
        body.setdefault("type", "percentage")
        body.setdefault("value", "10")
        body.setdefault("application_type", "order")
        for key, value in window().items():
            body.setdefault(key, value)
        return client.post("/api/discounts", json=body, headers=SALES)

    def test_valid_discount_is_created(self, client):
        response = self.create(client)
        assert response.status_code == 201
        assert response.json()["result"]["used_count"] == 0

    @pytest.mark.parametrize(
        "body, field",
        [
            ({"value": "120"}, "value"),
            ({"type": "buy_x_get_y", "value": "1"}, "conditions"),
            ({"type": "buy_x_get_y", "value": "1", "conditions": {"buy_quantity": 3}}, "conditions"),
            ({"application_type": "product"}, "target_ids"),
            ({"application_type": "category", "target_ids": []}, "target_ids"),
            (
                {"valid_from": NOW.isoformat(), "valid_to": (NOW - timedelta(hours=1)).isoformat()},
                "valid_to",
            ),
        ],
    )
    def test_rejected(self, client, body, field):
        response = self.create(client, **body)
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert [d["loc"] for d in error["details"]] == [[field]]

    async def test_patch_runs_the_same_rules(self, client, factory):
        discount = await factory.discount(target_ids=frozenset({"p1"}))
        response = client.patch(f"/api/discounts/{discount.id}", json={"target_ids": []}, headers=SALES)
        assert response.status_code == 400


class TestDiscountLookups:
    async def test_active_hides_exhausted_and_expired(self, client, factory):
        live = await factory.discount("Live", target_ids=frozenset({"p1"}), usage_limit=10, used_count=9)
        await factory.discount("Exhausted", target_ids=frozenset({"p1"}), usage_limit=10, used_count=10)
        await factory.discount("Expired", target_ids=frozenset({"p1"}), valid_to=NOW - timedelta(minutes=1))
        await factory.discount("Off", target_ids=frozenset({"p1"}), is_active=False)

        active = client.get("/api/discounts/active").json()

        assert [d["id"] for d in active] == [live.id]

    async def test_applicable_for_product(self, client, factory):
        breads = await factory.category("Breads")
        loaf = await factory.product(category_id=breads.id)
        by_product = await factory.discount("Loaf10", target_ids=frozenset({loaf.id}))
        by_category = await factory.discount(
            "Breads5", value="5", application_type=ApplicationType.CATEGORY, target_ids=frozenset({breads.id})
        )
        await factory.discount(
            "Bulk", target_ids=frozenset({loaf.id}), conditions=DiscountConditions(minimum_quantity=10)
        )
        await factory.discount("OtherProduct", target_ids=frozenset({"someone-else"}))

        found = client.get("/api/discounts/applicable", params={"product_id": loaf.id, "quantity": 2}).json()

        assert {d["id"] for d in found} == {by_product.id, by_category.id}

    async def test_applicable_respects_customer_group(self, client, factory):
        loaf = await factory.product()
        members = await factory.discount(
            "Members",
            type=DiscountType.FIXED_AMOUNT,
            value="5",
            target_ids=frozenset({loaf.id}),
            conditions=DiscountConditions(customer_groups=frozenset({"wholesale"})),
        )

        anonymous = client.get("/api/discounts/applicable", params={"product_id": loaf.id}).json()
        wholesale = client.get(
            "/api/discounts/applicable", params={"product_id": loaf.id, "customer_group": "wholesale"}
        ).json()

        assert anonymous == []
        assert [d["id"] for d in wholesale] == [members.id]
