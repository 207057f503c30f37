# engagement/tests/test_concurrency.py
"""
Races at the capacity boundary.

SharedLockRaceTests runs on every backend: the threads share one
OpportunityLocks, the way request threads in one process do, and sqlite
relies on exactly that lock. RowLockRaceTests gives each thread its own
OpportunityLocks so only the database row lock serializes them, the same as
two separate worker processes. Run it with TEST_ON_SERVER_DB=True against
MySQL or PostgreSQL; sqlite has no SELECT ... FOR UPDATE.
"""
import threading

from django.db import connection
from django.test import TransactionTestCase, skipUnlessDBFeature

from ..exceptions import EngagementError
from ..models import Application
from ..services import OpportunityLocks
from .helpers import EngagementFixtures

Status = Application.Status


class RaceScenarios(EngagementFixtures):
    def locks_for_thread(self):
        raise NotImplementedError

    def race(self, workers):
        barrier = threading.Barrier(len(workers))
        outcomes = []
        outcomes_lock = threading.Lock()

        def run(work):
            services = self.build_services(locks=self.locks_for_thread(), lock_timeout=10)
            try:
                barrier.wait()
                result = work(services)
            except EngagementError as e:
                result = e
            finally:
                connection.close()
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=run, args=(work,)) for work in workers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes

    def test_concurrent_accepts_admit_exactly_capacity(self):
        org, org_principal = self.make_organization('greenearth')
        opportunity = self.make_opportunity(org, capacity=1)
        applications = [
            self.make_application(self.make_volunteer(f'volunteer{i}')[0], opportunity)
            for i in range(4)
        ]

        outcomes = self.race([
            lambda services, pk=application.pk: services.lifecycle.accept(org_principal, pk)
            for application in applications
        ])

        accepted = [o for o in outcomes if isinstance(o, Application)]
        refused = [o for o in outcomes if isinstance(o, EngagementError)]
        self.assertEqual(len(accepted), 1)
        self.assertEqual({e.code for e in refused}, {'capacity_exceeded'})
        self.assertEqual(Application.objects.filter(opportunity=opportunity, status=Status.ACCEPTED).count(), 1)

    def test_concurrent_duplicate_applies_create_one_row(self):
        org, _ = self.make_organization('greenearth')
        opportunity = self.make_opportunity(org, capacity=3)
        _, alice_principal = self.make_volunteer('alice')

        outcomes = self.race([
            lambda services: services.lifecycle.apply(alice_principal, opportunity.pk)
            for _ in range(3)
        ])

        self.assertEqual(sum(isinstance(o, Application) for o in outcomes), 1)
        self.assertEqual({o.code for o in outcomes if isinstance(o, EngagementError)}, {'conflict'})
        self.assertEqual(Application.objects.filter(opportunity=opportunity).count(), 1)


class SharedLockRaceTests(RaceScenarios, TransactionTestCase):
    def setUp(self):
        self.shared_locks = OpportunityLocks()

    def locks_for_thread(self):
        return self.shared_locks


@skipUnlessDBFeature('has_select_for_update')
class RowLockRaceTests(RaceScenarios, TransactionTestCase):
    def locks_for_thread(self):
        return OpportunityLocks()
