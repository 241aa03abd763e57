"""
Resolver Registry - dispatch from object kind to its resolver.

Usage:
    registry = build_registry(ResolverContext(action=action, products=lookup))
    resolver = registry.get(step.kind)
"""

from typing import Dict, List, Type

import warehouse_operator.core.models.domain as dm
from warehouse_operator.resolvers.base import ResolverContext, StepResolver
from warehouse_operator.resolvers.condition import ConditionResolver
from warehouse_operator.resolvers.container import PlacementContainerResolver, StorageContainerResolver
from warehouse_operator.resolvers.container_ops import (
    ContainerClosingResolver, ContainerCreationResolver, LabelPrintingResolver,
)
from warehouse_operator.resolvers.expiration import ExpirationDateResolver
from warehouse_operator.resolvers.item import ItemResolver
from warehouse_operator.resolvers.location import LocationResolver
from warehouse_operator.resolvers.quantity import QuantityResolver


RESOLVER_CLASSES: List[Type[StepResolver]] = [
    ItemResolver,
    QuantityResolver,
    ExpirationDateResolver,
    ConditionResolver,
    StorageContainerResolver,
    PlacementContainerResolver,
    ContainerCreationResolver,
    ContainerClosingResolver,
    LabelPrintingResolver,
    LocationResolver,
]


class ResolverRegistry:
    """One resolver instance per object kind, bound to one wizard."""

    def __init__(self):
        self._resolvers: Dict[dm.ObjectKind, StepResolver] = {}

    def register(self, resolver: StepResolver) -> None:
        self._resolvers[resolver.kind] = resolver

    def get(self, kind: dm.ObjectKind) -> StepResolver:
        if kind not in self._resolvers:
            raise KeyError(f"No resolver registered for {kind.value}")
        return self._resolvers[kind]

    def kinds(self) -> List[dm.ObjectKind]:
        return list(self._resolvers)


def build_registry(context: ResolverContext) -> ResolverRegistry:
    registry = ResolverRegistry()
    for resolver_class in RESOLVER_CLASSES:
        registry.register(resolver_class(context))
    return registry
