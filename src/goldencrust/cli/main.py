"""
Operator CLI: serve the API, load sample data, price a basket, print the category tree.
"""
from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

from goldencrust.config import Settings
from goldencrust.core.errors import GoldenCrustError
from goldencrust.core.responses import to_jsonable

app = typer.Typer(help="Golden Crust bakery back-office.")


def _settings(store: Optional[str]) -> Settings:
    return Settings.from_env(**({"store": store} if store else {}))


def _echo_json(value: object) -> None:
    typer.echo(json.dumps(value, default=to_jsonable, indent=2, ensure_ascii=False))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default from GOLDENCRUST_HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (default from GOLDENCRUST_PORT)"),
    store: Optional[str] = typer.Option(None, help="memory or mongodb"),
    seed: bool = typer.Option(False, "--seed", help="Load sample data on startup"),
) -> None:
    """Run the HTTP API."""
    from goldencrust.main import create_app

    overrides = {"seed_sample_data": True} if seed else {}
    if store:
        overrides["store"] = store
    settings = Settings.from_env(**overrides)
    create_app(settings).run(host=host or settings.host, port=port or settings.port, log_level=settings.log_level)


@app.command()
def seed(store: Optional[str] = typer.Option(None, help="memory or mongodb")) -> None:
    """Load sample products, price lists and discounts."""
    from goldencrust.main import create_app
    from goldencrust.seed import seed_sample_data
    from goldencrust.store import DocumentStore

    application = create_app(_settings(store))

    async def run() -> bool:
        try:
            return await seed_sample_data(application.container)
        finally:
            await application.container.resolve(DocumentStore).close()

    loaded = asyncio.run(run())
    typer.echo("sample data loaded" if loaded else "store already has products; nothing to do")


@app.command()
def quote(
    items: list[str] = typer.Argument(..., help="product_id=quantity pairs"),
    customer_group: Optional[str] = typer.Option(None, "--group", "-g"),
    store: Optional[str] = typer.Option(None, help="memory or mongodb"),
) -> None:
    """Price a basket without placing an order."""
    from goldencrust.main import create_app
    from goldencrust.orders.domain import IOrderTotalCalculator, LineRequest

    lines = []
    for item in items:
        product_id, sep, quantity = item.partition("=")
        if not sep or not quantity.isdigit():
            raise typer.BadParameter(f"expected product_id=quantity, got {item!r}")
        lines.append(LineRequest(product_id=product_id, quantity=int(quantity)))

    application = create_app(_settings(store))
    calculator = application.container.resolve(IOrderTotalCalculator)
    try:
        result = asyncio.run(calculator.compute_order(lines, customer_group))
    except GoldenCrustError as exc:
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=1) from None
    _echo_json(result.to_dict())


@app.command("category-tree")
def category_tree(store: Optional[str] = typer.Option(None, help="memory or mongodb")) -> None:
    """Print the category tree."""
    from goldencrust.catalog.domain import build_category_tree
    from goldencrust.catalog.infrastructure import ICategoryRepository
    from goldencrust.main import create_app

    application = create_app(_settings(store))
    repository = application.container.resolve(ICategoryRepository)
    tree = build_category_tree(asyncio.run(repository.list_all()))
    _echo_json([node.to_dict() for node in tree])


def main() -> None:
    app()


if __name__ == "__main__":
    main()
