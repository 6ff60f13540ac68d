"""Discount applicability, deduction amounts and the evaluator service."""
from datetime import timedelta
from decimal import Decimal

from goldencrust.pricing.domain import (
    ApplicationType,
    Discount,
    DiscountConditions,
    DiscountTarget,
    DiscountType,
    IDiscountEvaluator,
    best_discount,
)

from conftest import NOW


def discount(id="d1", type=DiscountType.PERCENTAGE, value="20", application_type=ApplicationType.PRODUCT, **fields):
    fields.setdefault("target_ids", frozenset({"p1"}))
    fields.setdefault("valid_from", NOW - timedelta(days=1))
    fields.setdefault("valid_to", NOW + timedelta(days=1))
    return Discount(
        id=id, name=id, type=type, value=Decimal(value), application_type=application_type, **fields
    )


LINE = DiscountTarget(product_id="p1", category_id="breads")
ORDER = DiscountTarget()


class TestApplicability:
    def test_live_product_discount_applies(self):
        assert discount().applies_to(LINE, 1, Decimal("85"), NOW)

    def test_expired_or_not_started(self):
        assert not discount(valid_to=NOW - timedelta(seconds=1)).applies_to(LINE, 1, Decimal("85"), NOW)
        assert not discount(valid_from=NOW + timedelta(seconds=1)).applies_to(LINE, 1, Decimal("85"), NOW)

    def test_inactive(self):
        assert not discount(is_active=False).applies_to(LINE, 1, Decimal("85"), NOW)

    def test_usage_limit_reached(self):
        assert not discount(usage_limit=5, used_count=5).applies_to(LINE, 1, Decimal("85"), NOW)
        assert discount(usage_limit=5, used_count=4).applies_to(LINE, 1, Decimal("85"), NOW)

    def test_conditions(self):
        d = discount(conditions=DiscountConditions(minimum_quantity=3, minimum_order_value=Decimal("200")))
        assert not d.applies_to(LINE, 2, Decimal("500"), NOW)
        assert not d.applies_to(LINE, 3, Decimal("199.99"), NOW)
        assert d.applies_to(LINE, 3, Decimal("200"), NOW)

    def test_customer_group_condition(self):
        d = discount(conditions=DiscountConditions(customer_groups=frozenset({"wholesale"})))
        assert not d.applies_to(LINE, 1, Decimal("85"), NOW)
        assert d.applies_to(DiscountTarget(product_id="p1", customer_group="wholesale"), 1, Decimal("85"), NOW)

    def test_category_target(self):
        d = discount(application_type=ApplicationType.CATEGORY, target_ids=frozenset({"breads"}))
        assert d.applies_to(LINE, 1, Decimal("85"), NOW)
        assert not d.applies_to(DiscountTarget(product_id="p2", category_id="cakes"), 1, Decimal("85"), NOW)

    def test_scopes_do_not_mix(self):
        order_wide = discount(application_type=ApplicationType.ORDER, target_ids=frozenset())
        assert order_wide.applies_to(ORDER, 1, Decimal("85"), NOW)
        assert not order_wide.applies_to(LINE, 1, Decimal("85"), NOW)
        assert not discount().applies_to(ORDER, 1, Decimal("85"), NOW)

    def test_customer_discount_needs_a_group(self):
        d = discount(application_type=ApplicationType.CUSTOMER, target_ids=frozenset({"wholesale"}))
        assert not d.applies_to(ORDER, 1, Decimal("85"), NOW)
        assert not d.applies_to(DiscountTarget(customer_group="retail"), 1, Decimal("85"), NOW)
        assert d.applies_to(DiscountTarget(customer_group="wholesale"), 1, Decimal("85"), NOW)
        any_group = discount(application_type=ApplicationType.CUSTOMER, target_ids=frozenset())
        assert any_group.applies_to(DiscountTarget(customer_group="retail"), 1, Decimal("85"), NOW)


class TestDeduction:
    def test_percentage(self):
        assert discount(value="20").deduction(Decimal("170")) == Decimal("34.00")

    def test_percentage_never_exceeds_base(self):
        assert discount(value="150").deduction(Decimal("40")) == Decimal("40.00")

    def test_fixed_amount_is_clamped(self):
        d = discount(type=DiscountType.FIXED_AMOUNT, value="100")
        assert d.deduction(Decimal("250")) == Decimal("100.00")
        assert d.deduction(Decimal("60")) == Decimal("60.00")

    def test_buy_two_get_one(self):
        d = discount(type=DiscountType.BUY_X_GET_Y, value="1", conditions=DiscountConditions(buy_quantity=2, get_quantity=1))
        assert d.deduction(Decimal("595"), quantity=7, unit_price=Decimal("85")) == Decimal("170.00")
        assert d.deduction(Decimal("170"), quantity=2, unit_price=Decimal("85")) == Decimal("0.00")

    def test_buy_x_get_y_without_quantities_deducts_nothing(self):
        d = discount(type=DiscountType.BUY_X_GET_Y, value="1")
        assert d.deduction(Decimal("595"), quantity=7, unit_price=Decimal("85")) == Decimal("0.00")

    def test_rounding_half_up(self):
        assert discount(value="12.5").deduction(Decimal("0.99")) == Decimal("0.12")
        assert discount(value="50").deduction(Decimal("0.25")) == Decimal("0.13")


class TestBestDiscount:
    def test_largest_single_deduction_no_stacking(self):
        ten_pct = discount("a", value="10")
        flat_30 = discount("b", type=DiscountType.FIXED_AMOUNT, value="30")
        best = best_discount([ten_pct, flat_30], Decimal("200"))
        assert best.discount_id == "b"
        assert best.amount == Decimal("30.00")
        assert best.to_dict() == {"discount_id": "b", "name": best.name, "amount": Decimal("30.00")}

    def test_tie_keeps_lowest_id(self):
        best = best_discount([discount("z", value="10"), discount("a", value="10")], Decimal("100"))
        assert best.discount_id == "a"

    def test_zero_deduction_is_not_applied(self):
        bogo = discount(type=DiscountType.BUY_X_GET_Y, value="1", conditions=DiscountConditions(buy_quantity=5, get_quantity=1))
        assert best_discount([bogo], Decimal("85"), quantity=1, unit_price=Decimal("85")) is None


class TestDiscountEvaluator:
    async def test_expired_discounts_are_excluded(self, container, factory):
        product = await factory.product()
        await factory.discount("Old", target_ids=frozenset({product.id}), valid_to=NOW - timedelta(days=1))
        live = await factory.discount("Summer20", target_ids=frozenset({product.id}))
        evaluator = container.resolve(IDiscountEvaluator)

        found = await evaluator.active_discounts_for(DiscountTarget(product_id=product.id), 1, Decimal("85"))
        assert [d.id for d in found] == [live.id]

    async def test_excluded_ids_are_skipped(self, container, factory):
        product = await factory.product()
        d = await factory.discount(target_ids=frozenset({product.id}))
        evaluator = container.resolve(IDiscountEvaluator)
        found = await evaluator.active_discounts_for(DiscountTarget(product_id=product.id), 1, Decimal("85"), exclude=[d.id])
        assert found == []

    async def test_best_for_picks_max_not_sum(self, container, factory):
        product = await factory.product()
        await factory.discount("Ten", value="10", target_ids=frozenset({product.id}))
        twenty = await factory.discount("Twenty", value="20", target_ids=frozenset({product.id}))
        evaluator = container.resolve(IDiscountEvaluator)

        best = await evaluator.best_for(
            DiscountTarget(product_id=product.id), 2, Decimal("170"), Decimal("170"), Decimal("85")
        )
        assert best.discount_id == twenty.id
        assert best.amount == Decimal("34.00")

    async def test_buy_x_get_y_ignored_at_order_scope(self, container, factory):
        await factory.discount(
            "Bogo",
            type=DiscountType.BUY_X_GET_Y,
            value="1",
            application_type=ApplicationType.ORDER,
            conditions=DiscountConditions(buy_quantity=1, get_quantity=1),
        )
        evaluator = container.resolve(IDiscountEvaluator)
        assert await evaluator.best_for(DiscountTarget(), 4, Decimal("340"), Decimal("340")) is None
