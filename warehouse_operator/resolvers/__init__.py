from warehouse_operator.resolvers.base import SKIPPED, ResolverContext, StepOutcome, StepResolver
from warehouse_operator.resolvers.registry import ResolverRegistry, build_registry

__all__ = [
    'SKIPPED',
    'ResolverContext',
    'StepOutcome',
    'StepResolver',
    'ResolverRegistry',
    'build_registry',
]
