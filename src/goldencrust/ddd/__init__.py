from goldencrust.ddd.commands import Command, PatchCommand, Query
from goldencrust.ddd.domain_module import DomainModule

__all__ = ["Command", "PatchCommand", "Query", "DomainModule"]
