from goldencrust.system.module import create_system_module

__all__ = ["create_system_module"]
