"""Partners persistence."""
from __future__ import annotations

from abc import abstractmethod
from typing import Optional

from goldencrust.domain import Repository
from goldencrust.store import Document, DocumentRepository

from .domain import CustomerGroup, Distributor


class ICustomerGroupRepository(Repository[CustomerGroup]):
    entity_name = "customer group"

    @abstractmethod
    async def list_all(self) -> list[CustomerGroup]:
        ...

    @abstractmethod
    async def find_by_name(self, name: str) -> Optional[CustomerGroup]:
        ...


class IDistributorRepository(Repository[Distributor]):
    entity_name = "distributor"

    @abstractmethod
    async def list_all(self, *, active_only: bool = False) -> list[Distributor]:
        ...


class CustomerGroupRepositoryImpl(DocumentRepository[CustomerGroup], ICustomerGroupRepository):
    collection = "customer_groups"
    unique_fields = ("name",)

    def to_document(self, entity: CustomerGroup) -> Document:
        return {
            "_id": entity.id,
            "name": entity.name,
            "description": entity.description,
            "is_active": entity.is_active,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> CustomerGroup:
        return CustomerGroup(
            id=document["_id"],
            name=document["name"],
            description=document.get("description", ""),
            is_active=bool(document.get("is_active", True)),
            created_at=document["created_at"],
        )

    async def list_all(self) -> list[CustomerGroup]:
        return sorted(await self.find(), key=lambda g: g.name.lower())

    async def find_by_name(self, name: str) -> Optional[CustomerGroup]:
        found = await self.find({"name": name})
        return found[0] if found else None


class DistributorRepositoryImpl(DocumentRepository[Distributor], IDistributorRepository):
    collection = "distributors"

    def to_document(self, entity: Distributor) -> Document:
        return {
            "_id": entity.id,
            "name": entity.name,
            "contact_name": entity.contact_name,
            "email": entity.email,
            "phone": entity.phone,
            "address": entity.address,
            "territory": entity.territory,
            "customer_group": entity.customer_group,
            "user_id": entity.user_id,
            "is_active": entity.is_active,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> Distributor:
        return Distributor(
            id=document["_id"],
            name=document["name"],
            contact_name=document.get("contact_name", ""),
            email=document.get("email"),
            phone=document.get("phone"),
            address=document.get("address", ""),
            territory=document.get("territory"),
            customer_group=document.get("customer_group"),
            user_id=document.get("user_id"),
            is_active=bool(document.get("is_active", True)),
            created_at=document["created_at"],
        )

    async def list_all(self, *, active_only: bool = False) -> list[Distributor]:
        distributors = await self.find({"is_active": True} if active_only else None)
        return sorted(distributors, key=lambda d: d.name.lower())
