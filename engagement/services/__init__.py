# engagement/services/__init__.py
from dataclasses import dataclass

from .capacity import CapacityLedger, OpportunityLocks
from .guard import Operation, OwnershipGuard, Principal
from .lifecycle import LifecycleEngine
from .metrics import ImpactFigures, MetricsPipeline, OrganizationImpact
from .opportunities import OpportunityService
from .repository import DjangoRepository


@dataclass(frozen=True)
class EngagementServices:
    repository: DjangoRepository
    guard: OwnershipGuard
    capacity: CapacityLedger
    metrics: MetricsPipeline
    lifecycle: LifecycleEngine
    opportunities: OpportunityService


def get_engagement_services(repository=None, clock=None, lock_timeout=None, locks=None):
    """
    Factory function to wire the engagement services around one repository.

    Args:
        repository: Persistence implementation; defaults to DjangoRepository
        clock: Callable returning the current aware datetime (tests pin it)
        lock_timeout: Seconds to wait for an opportunity's admission lock
        locks: OpportunityLocks registry; defaults to the process-wide one
    """
    repository = repository or DjangoRepository()
    extra = {'clock': clock} if clock is not None else {}

    guard = OwnershipGuard(repository)
    capacity = CapacityLedger(repository, locks=locks, lock_timeout=lock_timeout)
    metrics = MetricsPipeline(repository, guard)
    return EngagementServices(
        repository=repository,
        guard=guard,
        capacity=capacity,
        metrics=metrics,
        lifecycle=LifecycleEngine(repository, guard, capacity, metrics, **extra),
        opportunities=OpportunityService(repository, guard, capacity, **extra),
    )


__all__ = [
    'CapacityLedger',
    'DjangoRepository',
    'EngagementServices',
    'ImpactFigures',
    'LifecycleEngine',
    'MetricsPipeline',
    'Operation',
    'OpportunityLocks',
    'OpportunityService',
    'OrganizationImpact',
    'OwnershipGuard',
    'Principal',
    'get_engagement_services',
]
