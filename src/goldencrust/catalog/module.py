"""One object = full bounded context «catalog»."""
import logging

from goldencrust.core.access import roles
from goldencrust.ddd import DomainModule

from .application import (
    CreateCategory,
    CreateCategoryHandler,
    CreateProduct,
    CreateProductHandler,
    DeactivateProduct,
    DeactivateProductHandler,
    DeleteCategory,
    DeleteCategoryHandler,
    GetCategory,
    GetCategoryHandler,
    GetCategoryTree,
    GetCategoryTreeHandler,
    GetProduct,
    GetProductHandler,
    ListCategories,
    ListCategoriesHandler,
    ListProducts,
    ListProductsHandler,
    SearchProducts,
    SearchProductsHandler,
    UpdateCategory,
    UpdateCategoryHandler,
    UpdateProduct,
    UpdateProductHandler,
)
from .domain import Product, ProductCategory, ProductCreated
from .infrastructure import CategoryRepositoryImpl, ICategoryRepository, IProductRepository, ProductRepositoryImpl

logger = logging.getLogger(__name__)

CATALOG_EDITORS = roles("admin", "inventory")
CATEGORY_EDITORS = roles("admin")


def log_product_created(event: ProductCreated) -> None:
    logger.info("product %s created (sku %s)", event.product_id, event.sku)


# Static paths are registered before /{product_id} so they win the match.
catalog_module = (
    DomainModule("catalog")
    .aggregate(Product)
    .aggregate(ProductCategory)
    .repository(IProductRepository, ProductRepositoryImpl)
    .repository(ICategoryRepository, CategoryRepositoryImpl)
    .query(ListProducts, ListProductsHandler, path="/api/products")
    .query(SearchProducts, SearchProductsHandler, path="/api/products/search")
    .query(GetProduct, GetProductHandler, path="/api/products/{product_id}")
    .command(CreateProduct, CreateProductHandler, path="/api/products", roles=CATALOG_EDITORS, status_code=201)
    .command(UpdateProduct, UpdateProductHandler, path="/api/products/{product_id}", method="PATCH", roles=CATALOG_EDITORS)
    .command(DeactivateProduct, DeactivateProductHandler, path="/api/products/{product_id}", method="DELETE", roles=CATALOG_EDITORS)
    .query(ListCategories, ListCategoriesHandler, path="/api/categories")
    .query(GetCategoryTree, GetCategoryTreeHandler, path="/api/categories/tree")
    .query(GetCategory, GetCategoryHandler, path="/api/categories/{category_id}")
    .command(CreateCategory, CreateCategoryHandler, path="/api/categories", roles=CATEGORY_EDITORS, status_code=201)
    .command(UpdateCategory, UpdateCategoryHandler, path="/api/categories/{category_id}", method="PATCH", roles=CATEGORY_EDITORS)
    .command(DeleteCategory, DeleteCategoryHandler, path="/api/categories/{category_id}", method="DELETE", roles=CATEGORY_EDITORS)
    .on_event(ProductCreated, log_product_created)
)
