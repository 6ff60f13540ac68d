"""Single config object: user passes it when creating the app; available via DI."""
import os
from typing import Any, Mapping, Optional


class Config:
    """
    Application config. User creates their own class or instance
    and passes to Application(config=...); then available via container.resolve(MyConfig).
    """

    @classmethod
    def load_from_env(
        cls,
        prefix: str = "APP_",
        environ: Optional[Mapping[str, str]] = None,
        **defaults: Any,
    ) -> dict[str, Any]:
        """Load from os.environ with prefix and defaults. Returns dict for MyConfig(**Config.load_from_env())."""
        result = dict(defaults)
        source = os.environ if environ is None else environ
        for key, value in source.items():
            if key.startswith(prefix):
                name = key[len(prefix):].lower()
                result[name] = value
        return result

    @staticmethod
    def as_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
