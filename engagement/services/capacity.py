# engagement/services/capacity.py
"""
Capacity ledger: how many applications an opportunity currently holds in the
ACCEPTED state, and the admission unit that serializes check-then-write
sequences per opportunity.
"""

import logging
import threading
import weakref
from contextlib import contextmanager

from django.conf import settings

from ..exceptions import TransientFailure
from ..models import Application

logger = logging.getLogger(__name__)

# Statuses that keep an opportunity from being deleted.
BLOCKING_STATUSES = (
    Application.Status.PENDING,
    Application.Status.ACCEPTED,
    Application.Status.COMPLETED,
)


class OpportunityLocks:
    """
    Process-local mutex per opportunity id. An entry lives only while some
    caller still holds a reference to its lock.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def for_opportunity(self, opportunity_id):
        with self._guard:
            lock = self._locks.get(opportunity_id)
            if lock is None:
                lock = self._locks[opportunity_id] = threading.Lock()
            return lock

    def __contains__(self, opportunity_id):
        return opportunity_id in self._locks


_default_locks = OpportunityLocks()


class CapacityLedger:
    def __init__(self, repository, locks=None, lock_timeout=None):
        self.repository = repository
        self.locks = locks or _default_locks
        self.lock_timeout = lock_timeout if lock_timeout is not None else getattr(settings, 'ENGAGEMENT_LOCK_TIMEOUT', 5.0)

    def accepted_count(self, opportunity_id):
        """Count read from the live application rows, never from a stored counter."""
        return self.repository.count_applications(opportunity_id, [Application.Status.ACCEPTED])

    def has_room(self, opportunity):
        return self.accepted_count(opportunity.pk) < opportunity.capacity

    def remaining(self, opportunity):
        return max(0, opportunity.capacity - self.accepted_count(opportunity.pk))

    def blocking_dependents(self, opportunity_id):
        return self.repository.count_applications(opportunity_id, BLOCKING_STATUSES)

    @contextmanager
    def admission(self, opportunity_id):
        """
        Hold the opportunity for a check-then-write sequence.

        Takes the in-process lock for the opportunity, opens a transaction and
        locks the opportunity row, then yields the locked opportunity. Reads of
        accepted_count made inside the block and the writes that depend on them
        commit or roll back together. Raises NotFound if the opportunity does
        not exist and TransientFailure if the lock cannot be taken in time.
        """
        lock = self.locks.for_opportunity(opportunity_id)
        if not lock.acquire(timeout=self.lock_timeout):
            logger.warning(f"Admission lock timeout for opportunity {opportunity_id}")
            raise TransientFailure("The opportunity is busy. Please retry.")
        try:
            with self.repository.unit_of_work():
                yield self.repository.get_opportunity(opportunity_id, for_update=True)
        finally:
            lock.release()
