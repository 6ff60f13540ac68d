"""Service settings, read from GOLDENCRUST_* environment variables."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from goldencrust.core.config import Config

STORE_BACKENDS = ("memory", "mongodb")


@dataclass
class Settings:
    store: str = "memory"
    mongodb_uri: str = "mongodb://localhost:27017/goldencrust"
    database_name: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    currency: str = "INR"
    seed_sample_data: bool = False

    def __post_init__(self) -> None:
        self.store = self.store.lower()
        if self.store not in STORE_BACKENDS:
            raise ValueError(f"store must be one of {', '.join(STORE_BACKENDS)}, got {self.store!r}")
        self.port = int(self.port)
        self.log_level = self.log_level.upper()
        self.seed_sample_data = Config.as_bool(self.seed_sample_data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> Settings:
        values = Config.load_from_env(prefix="GOLDENCRUST_", environ=environ)
        known = {k: v for k, v in values.items() if k in cls.__dataclass_fields__}
        known.update(overrides)
        return cls(**known)
