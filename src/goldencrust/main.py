"""
App composition: every bounded context is a module object passed to app.register().

    uvicorn goldencrust.main:app
"""
from __future__ import annotations

import logging
from typing import Optional

from goldencrust import __version__
from goldencrust.catalog import catalog_module
from goldencrust.catalog.infrastructure import ProductRepositoryImpl
from goldencrust.config import Settings
from goldencrust.core import Application
from goldencrust.core.clock import Clock
from goldencrust.dashboard import dashboard_module
from goldencrust.finance import finance_module
from goldencrust.inventory import inventory_module
from goldencrust.orders import orders_module
from goldencrust.partners import partners_module
from goldencrust.partners.infrastructure import CustomerGroupRepositoryImpl
from goldencrust.pricing import pricing_module
from goldencrust.production import production_module
from goldencrust.seed import seed_sample_data
from goldencrust.store import DocumentStore, InMemoryDocumentStore
from goldencrust.system import create_system_module

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def open_store(settings: Settings) -> DocumentStore:
    if settings.store == "mongodb":
        from goldencrust.store.mongo import MongoDocumentStore

        return MongoDocumentStore(settings.mongodb_uri, settings.database_name)
    return InMemoryDocumentStore()


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[DocumentStore] = None,
    clock: Optional[Clock] = None,
) -> Application:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    store = store if store is not None else open_store(settings)

    app = Application(config=settings)
    app.container.register_instance(DocumentStore, store)
    app.container.register_instance(Clock, clock or Clock())

    # Domain modules (bounded contexts)
    app.register(catalog_module)
    app.register(pricing_module)
    app.register(orders_module)
    app.register(inventory_module)
    app.register(production_module)
    app.register(finance_module)
    app.register(partners_module)
    app.register(dashboard_module)

    # Plain HTTP routes
    app.register(create_system_module(__version__, settings.store))
    app.openapi(title="Golden Crust", version=__version__)

    async def ensure_indexes() -> None:
        for repository in (app.container.resolve(ProductRepositoryImpl), app.container.resolve(CustomerGroupRepositoryImpl)):
            await repository.ensure_indexes()

    app.on_startup(ensure_indexes)
    if settings.seed_sample_data:
        async def seed() -> None:
            await seed_sample_data(app.container)

        app.on_startup(seed)
    app.on_shutdown(store.close)
    logger.info("goldencrust %s ready (store=%s, currency=%s)", __version__, settings.store, settings.currency)
    return app


app = create_app()
