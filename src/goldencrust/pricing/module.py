"""One object = full bounded context «pricing»."""
import logging

from goldencrust.core.access import roles
from goldencrust.ddd import DomainModule

from .application import (
    ActiveDiscounts,
    ActiveDiscountsHandler,
    ActivePriceLists,
    ActivePriceListsHandler,
    ApplicableDiscounts,
    ApplicableDiscountsHandler,
    CreateDiscount,
    CreateDiscountHandler,
    CreatePriceList,
    CreatePriceListHandler,
    DeactivateDiscount,
    DeactivateDiscountHandler,
    DeactivatePriceList,
    DeactivatePriceListHandler,
    ListDiscounts,
    ListDiscountsHandler,
    ListPriceLists,
    ListPriceListsHandler,
    ResolvePrice,
    ResolvePriceHandler,
    UpdateDiscount,
    UpdateDiscountHandler,
    UpdatePriceList,
    UpdatePriceListHandler,
)
from .domain import (
    Discount,
    DiscountExhaustedEvent,
    DiscountRedeemed,
    IDiscountEvaluator,
    IPriceListResolver,
    PriceList,
)
from .infrastructure import (
    DiscountEvaluatorImpl,
    DiscountRepositoryImpl,
    IDiscountRepository,
    IPriceListRepository,
    PriceListRepositoryImpl,
    PriceListResolverImpl,
)

logger = logging.getLogger(__name__)

PRICING_EDITORS = roles("admin", "sales")


def log_discount_redeemed(event: DiscountRedeemed) -> None:
    logger.info("discount %s redeemed by order %s (used %d)", event.discount_id, event.order_id, event.used_count)


def log_discount_exhausted(event: DiscountExhaustedEvent) -> None:
    logger.info("discount %s ran out while placing order %s; order priced without it", event.discount_id, event.order_id)


pricing_module = (
    DomainModule("pricing")
    .aggregate(PriceList)
    .aggregate(Discount)
    .repository(IPriceListRepository, PriceListRepositoryImpl)
    .repository(IDiscountRepository, DiscountRepositoryImpl)
    .bind(IPriceListResolver, PriceListResolverImpl)
    .bind(IDiscountEvaluator, DiscountEvaluatorImpl)
    .query(ResolvePrice, ResolvePriceHandler, path="/api/products/{product_id}/price")
    .query(ListPriceLists, ListPriceListsHandler, path="/api/price-lists", roles=PRICING_EDITORS)
    .query(ActivePriceLists, ActivePriceListsHandler, path="/api/price-lists/active")
    .command(CreatePriceList, CreatePriceListHandler, path="/api/price-lists", roles=PRICING_EDITORS, status_code=201)
    .command(UpdatePriceList, UpdatePriceListHandler, path="/api/price-lists/{price_list_id}", method="PATCH", roles=PRICING_EDITORS)
    .command(DeactivatePriceList, DeactivatePriceListHandler, path="/api/price-lists/{price_list_id}", method="DELETE", roles=PRICING_EDITORS)
    .query(ListDiscounts, ListDiscountsHandler, path="/api/discounts", roles=PRICING_EDITORS)
    .query(ActiveDiscounts, ActiveDiscountsHandler, path="/api/discounts/active")
    .query(ApplicableDiscounts, ApplicableDiscountsHandler, path="/api/discounts/applicable")
    .command(CreateDiscount, CreateDiscountHandler, path="/api/discounts", roles=PRICING_EDITORS, status_code=201)
    .command(UpdateDiscount, UpdateDiscountHandler, path="/api/discounts/{discount_id}", method="PATCH", roles=PRICING_EDITORS)
    .command(DeactivateDiscount, DeactivateDiscountHandler, path="/api/discounts/{discount_id}", method="DELETE", roles=PRICING_EDITORS)
    .on_event(DiscountRedeemed, log_discount_redeemed)
    .on_event(DiscountExhaustedEvent, log_discount_exhausted)
)
