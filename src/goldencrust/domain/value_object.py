"""ValueObject: immutable value compared by its fields."""
import dataclasses
from typing import Any


@dataclasses.dataclass(frozen=True)
class ValueObject:
    """Subclasses are frozen dataclasses; equality and hashing come from the fields."""

    def to_dict(self) -> dict[str, Any]:
        # shallow: Decimal and datetime values are left for the JSON encoder
        return {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
