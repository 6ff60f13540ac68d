"""Partners domain: distributors and the customer groups that price lists and discounts target."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CustomerGroup:
    id: str
    name: str
    description: str = ""
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class Distributor:
    id: str
    name: str
    contact_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    address: str = ""
    territory: Optional[str] = None
    customer_group: Optional[str] = None
    user_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
