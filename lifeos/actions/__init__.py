"""Action framework: import domain modules here to register their handlers."""

# Importing a domain module runs its @registry.action() decorators.
from lifeos.actions import (  # noqa: F401
    budgets,
    conversation,
    finance,
    habits,
    inventory,
    notes,
    study,
    tasks,
)
from lifeos.actions.registry import registry

__all__ = ["registry"]
