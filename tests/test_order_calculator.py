"""Order totals: line prices, line discounts, the order-level discount."""
from decimal import Decimal

import pytest

from goldencrust.core.errors import NotFound, ValidationError
from goldencrust.orders.domain import IOrderTotalCalculator, LineRequest
from goldencrust.pricing.domain import ApplicationType, DiscountConditions, DiscountType


@pytest.fixture
def calculator(container):
    return container.resolve(IOrderTotalCalculator)


class TestComputeOrder:
    async def test_plain_basket(self, calculator, factory):
        bread = await factory.product("Classic Sourdough", base_price="85")
        cake = await factory.product("Chocolate Layer Cake", base_price="450")

        quote = await calculator.compute_order([LineRequest(bread.id, 3), LineRequest(cake.id, 1)])

        assert quote.total_amount == Decimal("705.00")
        assert quote.subtotal == Decimal("705.00")
        assert quote.order_discount is None
        assert [i.total_price for i in quote.items] == [Decimal("255.00"), Decimal("450.00")]
        assert quote.items[0].product_name == "Classic Sourdough"

    async def test_wholesale_price_list(self, calculator, factory):
        bread = await factory.product(base_price="85")
        await factory.price_list("Wholesale", min_quantity=50, prices={bread.id: Decimal("70")})

        quote = await calculator.compute_order([LineRequest(bread.id, 60)])

        assert quote.items[0].unit_price == Decimal("70.00")
        assert quote.total_amount == Decimal("4200.00")

    async def test_product_discount_on_a_line(self, calculator, factory):
        bread = await factory.product(base_price="85")
        summer = await factory.discount("Summer20", value="20", target_ids=frozenset({bread.id}))

        quote = await calculator.compute_order([LineRequest(bread.id, 2)])

        line = quote.items[0]
        assert line.discount_id == summer.id
        assert line.discount_amount == Decimal("34.00")
        assert line.total_price == Decimal("136.00")
        assert quote.discount_ids() == [summer.id]

    async def test_order_value_condition_uses_the_whole_basket(self, calculator, factory):
        bread = await factory.product(base_price="85")
        cake = await factory.product("Red Velvet Cake", base_price="480")
        await factory.discount(
            "Bread with a cake",
            type=DiscountType.FIXED_AMOUNT,
            value="15",
            target_ids=frozenset({bread.id}),
            conditions=DiscountConditions(minimum_order_value=Decimal("500")),
        )

        alone = await calculator.compute_order([LineRequest(bread.id, 1)])
        with_cake = await calculator.compute_order([LineRequest(bread.id, 1), LineRequest(cake.id, 1)])

        assert alone.items[0].discount_amount == Decimal("0.00")
        assert with_cake.items[0].discount_amount == Decimal("15.00")

    async def test_order_discount_taken_off_subtotal(self, calculator, factory):
        cake = await factory.product("Chocolate Layer Cake", base_price="450")
        big = await factory.discount(
            "Big Basket",
            type=DiscountType.FIXED_AMOUNT,
            value="100",
            application_type=ApplicationType.ORDER,
            conditions=DiscountConditions(minimum_order_value=Decimal("800")),
        )

        quote = await calculator.compute_order([LineRequest(cake.id, 2)])

        assert quote.subtotal == Decimal("900.00")
        assert quote.order_discount.discount_id == big.id
        assert quote.total_amount == Decimal("800.00")

    async def test_customer_discount_needs_the_group(self, calculator, factory):
        bread = await factory.product(base_price="100")
        await factory.discount(
            "Wholesale 5%",
            value="5",
            application_type=ApplicationType.CUSTOMER,
            target_ids=frozenset({"wholesale"}),
        )

        anonymous = await calculator.compute_order([LineRequest(bread.id, 1)])
        wholesale = await calculator.compute_order([LineRequest(bread.id, 1)], customer_group="wholesale")

        assert anonymous.total_amount == Decimal("100.00")
        assert wholesale.total_amount == Decimal("95.00")

    async def test_excluded_discount_is_not_used(self, calculator, factory):
        bread = await factory.product(base_price="85")
        summer = await factory.discount(target_ids=frozenset({bread.id}))

        quote = await calculator.compute_order([LineRequest(bread.id, 2)], exclude=[summer.id])

        assert quote.total_amount == Decimal("170.00")
        assert quote.discount_ids() == []

    async def test_totals_never_negative(self, calculator, factory):
        macaron = await factory.product("French Macarons", base_price="32")
        await factory.discount("Huge", type=DiscountType.FIXED_AMOUNT, value="500", target_ids=frozenset({macaron.id}))

        quote = await calculator.compute_order([LineRequest(macaron.id, 1)])

        assert quote.items[0].total_price == Decimal("0.00")
        assert quote.total_amount == Decimal("0.00")

    async def test_deterministic(self, calculator, factory):
        bread = await factory.product(base_price="85")
        await factory.discount(target_ids=frozenset({bread.id}))
        first = await calculator.compute_order([LineRequest(bread.id, 4)])
        second = await calculator.compute_order([LineRequest(bread.id, 4)])
        assert first.to_dict() == second.to_dict()


class TestComputeOrderErrors:
    async def test_empty_basket(self, calculator):
        with pytest.raises(ValidationError):
            await calculator.compute_order([])

    async def test_zero_quantity(self, calculator, factory):
        bread = await factory.product()
        with pytest.raises(ValidationError) as info:
            await calculator.compute_order([LineRequest(bread.id, 0)])
        assert info.value.details[0]["loc"] == ["items", 0, "quantity"]

    async def test_unknown_product(self, calculator):
        with pytest.raises(NotFound):
            await calculator.compute_order([LineRequest("missing", 1)])
