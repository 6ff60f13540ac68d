"""Partners application layer."""
from __future__ import annotations

import dataclasses
from typing import Annotated, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from goldencrust.core.errors import Conflict, NotFound
from goldencrust.ddd import Command, Query
from goldencrust.store import new_id

from .domain import CustomerGroup, Distributor
from .infrastructure import ICustomerGroupRepository, IDistributorRepository

Name = Annotated[str, Field(min_length=1, max_length=200)]


@dataclass
class CreateCustomerGroup(Command):
    name: Annotated[str, Field(min_length=1, max_length=100)]
    description: str = ""
    is_active: bool = True


@dataclass
class ListCustomerGroups(Query):
    pass


@dataclass
class CreateDistributor(Command):
    name: Name
    contact_name: str = ""
    email: Optional[Annotated[str, Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]] = None
    phone: Optional[str] = None
    address: str = ""
    territory: Optional[str] = None
    customer_group: Optional[str] = None
    user_id: Optional[str] = None
    is_active: bool = True


@dataclass
class ListDistributors(Query):
    active_only: bool = False


class CreateCustomerGroupHandler:
    def __init__(self, groups: ICustomerGroupRepository):
        self._groups = groups

    async def __call__(self, cmd: CreateCustomerGroup) -> dict:
        name = cmd.name.strip()
        if await self._groups.find_by_name(name) is not None:
            raise Conflict(f"customer group {name!r} already exists")
        group = CustomerGroup(id=new_id(), name=name, description=cmd.description, is_active=cmd.is_active)
        await self._groups.add(group)
        return dataclasses.asdict(group)


class ListCustomerGroupsHandler:
    def __init__(self, groups: ICustomerGroupRepository):
        self._groups = groups

    async def __call__(self, query: ListCustomerGroups) -> list[dict]:
        return [dataclasses.asdict(g) for g in await self._groups.list_all()]


class CreateDistributorHandler:
    def __init__(self, distributors: IDistributorRepository, groups: ICustomerGroupRepository):
        self._distributors = distributors
        self._groups = groups

    async def __call__(self, cmd: CreateDistributor) -> dict:
        if cmd.customer_group is not None and await self._groups.find_by_name(cmd.customer_group) is None:
            raise NotFound("customer group", cmd.customer_group)
        distributor = Distributor(
            id=new_id(),
            name=cmd.name,
            contact_name=cmd.contact_name,
            email=cmd.email,
            phone=cmd.phone,
            address=cmd.address,
            territory=cmd.territory,
            customer_group=cmd.customer_group,
            user_id=cmd.user_id,
            is_active=cmd.is_active,
        )
        await self._distributors.add(distributor)
        return dataclasses.asdict(distributor)


class ListDistributorsHandler:
    def __init__(self, distributors: IDistributorRepository):
        self._distributors = distributors

    async def __call__(self, query: ListDistributors) -> list[dict]:
        return [dataclasses.asdict(d) for d in await self._distributors.list_all(active_only=query.active_only)]
