# engagement/tests/test_metrics.py
from datetime import timedelta

from django.test import TestCase

from ..exceptions import Conflict, Forbidden, InvalidState, NotFound, Unauthenticated, ValidationFailed
from ..models import Application, ImpactAnalysis, Portfolio
from ..services import Operation
from .helpers import EngagementFixtures, WINDOW_START

Status = Application.Status


class DerivePortfolioTests(EngagementFixtures, TestCase):
    def setUp(self):
        self.services = self.build_services()
        self.metrics = self.services.metrics
        self.org, self.org_principal = self.make_organization('greenearth')
        self.alice, self.alice_principal = self.make_volunteer('alice')
        self.opportunity = self.make_opportunity(self.org)

    def test_eight_hour_window_yields_eight_hours(self):
        application = self.make_application(self.alice, self.opportunity, Status.COMPLETED)

        portfolio = self.metrics.derive_portfolio(application)

        self.assertEqual(portfolio.contribution_hours, 8)
        self.assertEqual(portfolio.volunteer_id, self.alice.pk)
        self.assertEqual(portfolio.opportunity_id, self.opportunity.pk)

    def test_hours_round_half_up(self):
        cases = [
            (timedelta(hours=7, minutes=30), 8),
            (timedelta(hours=2, minutes=29), 2),
            (timedelta(hours=2, minutes=30), 3),
            (timedelta(minutes=20), 0),
        ]
        for index, (duration, expected) in enumerate(cases):
            with self.subTest(duration=duration):
                opportunity = self.make_opportunity(self.org, start=WINDOW_START, end=WINDOW_START + duration, title=f'Shift {index}')
                application = self.make_application(self.alice, opportunity, Status.COMPLETED)

                portfolio = self.metrics.derive_portfolio(application)
                self.assertEqual(portfolio.contribution_hours, expected)

    def test_requires_completed_status(self):
        for status in (Status.PENDING, Status.ACCEPTED, Status.REJECTED):
            with self.subTest(status=status):
                Application.objects.all().delete()
                application = self.make_application(self.alice, self.opportunity, status)

                with self.assertRaises(InvalidState):
                    self.metrics.derive_portfolio(application)
        self.assertFalse(Portfolio.objects.exists())

    def test_second_portfolio_for_same_activity_conflicts(self):
        application = self.make_application(self.alice, self.opportunity, Status.COMPLETED)
        self.metrics.derive_portfolio(application)

        with self.assertRaises(Conflict):
            self.metrics.derive_portfolio(application)
        self.assertEqual(Portfolio.objects.filter(volunteer=self.alice).count(), 1)

    def test_volunteer_accrues_one_portfolio_per_activity(self):
        second = self.make_opportunity(self.org, title='Food Drive')
        self.metrics.derive_portfolio(self.make_application(self.alice, self.opportunity, Status.COMPLETED))
        self.metrics.derive_portfolio(self.make_application(self.alice, second, Status.COMPLETED))

        titles = sorted(Portfolio.objects.filter(volunteer=self.alice).values_list('activity_title', flat=True))
        self.assertEqual(titles, ['Beach Cleanup', 'Food Drive'])

    def test_title_is_snapshot(self):
        application = self.make_application(self.alice, self.opportunity, Status.ACCEPTED)
        self.services.lifecycle.complete(self.org_principal, application.pk)

        self.services.opportunities.update_opportunity(self.org_principal, self.opportunity.pk, title='Harbor Cleanup')

        portfolio = Portfolio.objects.get(volunteer=self.alice)
        self.assertEqual(portfolio.activity_title, 'Beach Cleanup')

    def test_no_principal_may_create_portfolio_directly(self):
        with self.assertRaises(Forbidden):
            self.services.guard.authorize(self.org_principal, Operation.CREATE_PORTFOLIO)
        with self.assertRaises(Forbidden):
            self.services.guard.authorize(self.alice_principal, Operation.CREATE_PORTFOLIO)

    def test_portfolio_statistics(self):
        second = self.make_opportunity(self.org, title='Food Drive', end=WINDOW_START + timedelta(hours=3))
        self.metrics.derive_portfolio(self.make_application(self.alice, self.opportunity, Status.COMPLETED), certificate='cert-001')
        self.metrics.derive_portfolio(self.make_application(self.alice, second, Status.COMPLETED), badge='Helper')

        stats = self.metrics.portfolio_statistics(self.alice_principal)

        self.assertEqual(stats, {'total_hours': 11, 'total_activities': 2, 'certificates_count': 1, 'badges_count': 1})
        self.assertEqual(len(self.metrics.portfolios_for_volunteer(self.alice_principal)), 2)

    def test_get_portfolio_for_its_volunteer_only(self):
        portfolio = self.metrics.derive_portfolio(self.make_application(self.alice, self.opportunity, Status.COMPLETED))
        _, bob_principal = self.make_volunteer('bob')

        self.assertEqual(self.metrics.get_portfolio(self.alice_principal, portfolio.pk).pk, portfolio.pk)
        with self.assertRaises(Forbidden):
            self.metrics.get_portfolio(bob_principal, portfolio.pk)
        with self.assertRaises(Forbidden):
            self.metrics.get_portfolio(self.org_principal, portfolio.pk)
        with self.assertRaises(NotFound):
            self.metrics.get_portfolio(self.alice_principal, 9999)
        with self.assertRaises(Unauthenticated):
            self.metrics.get_portfolio(None, 9999)

    def test_organization_has_no_portfolio_listing(self):
        with self.assertRaises(Forbidden):
            self.metrics.portfolios_for_volunteer(self.org_principal)


class ImpactTests(EngagementFixtures, TestCase):
    def setUp(self):
        self.services = self.build_services()
        self.metrics = self.services.metrics
        self.org, self.org_principal = self.make_organization('greenearth')
        self.alice, _ = self.make_volunteer('alice')
        self.bob, _ = self.make_volunteer('bob')
        self.carol, _ = self.make_volunteer('carol')
        self.cleanup = self.make_opportunity(self.org, capacity=5)
        self.drive = self.make_opportunity(self.org, capacity=5, title='Food Drive', end=WINDOW_START + timedelta(hours=4))

    def complete(self, volunteer, opportunity):
        application = self.make_application(volunteer, opportunity, Status.COMPLETED)
        self.metrics.derive_portfolio(application)
        return application

    def test_compute_impact_counts_completed_volunteers_only(self):
        self.complete(self.alice, self.cleanup)
        self.complete(self.bob, self.cleanup)
        self.make_application(self.carol, self.cleanup, Status.ACCEPTED)

        figures = self.metrics.compute_impact(self.cleanup.pk)

        self.assertEqual(figures.total_volunteers, 2)
        self.assertEqual(figures.total_hours, 16)

    def test_compute_impact_for_empty_opportunity(self):
        figures = self.metrics.compute_impact(self.cleanup.pk)
        self.assertEqual((figures.total_hours, figures.total_volunteers), (0, 0))

    def test_organization_impact_deduplicates_per_opportunity(self):
        self.complete(self.alice, self.cleanup)
        self.complete(self.alice, self.drive)
        self.complete(self.bob, self.drive)

        impact = self.metrics.calculate_organization_impact(self.org_principal)

        self.assertEqual(impact.total_hours, 8 + 4 + 4)
        self.assertEqual(impact.total_volunteers, 3)
        self.assertEqual(impact.total_opportunities, 2)
        self.assertEqual(impact.completed_applications, 3)
        self.assertEqual(impact.as_dict()['total_hours'], 16)

    def test_create_impact_analysis_seeds_totals(self):
        self.complete(self.alice, self.cleanup)
        self.complete(self.bob, self.cleanup)

        impact = self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries='120')

        self.assertEqual(impact.total_hours, 16)
        self.assertEqual(impact.total_volunteers, 2)
        self.assertEqual(impact.beneficiaries, 120)
        self.assertEqual(impact.region_covered, 'Santa Monica')
        self.assertEqual(impact.organization_id, self.org.pk)

    def test_duplicate_impact_analysis_conflicts(self):
        self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10, region_covered='LA County')

        with self.assertRaises(Conflict):
            self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10)
        self.assertEqual(ImpactAnalysis.objects.count(), 1)

    def test_impact_analysis_requires_owning_organization(self):
        _, other_principal = self.make_organization('bluesea')
        _, volunteer_principal = self.make_volunteer('dave')

        with self.assertRaises(Forbidden):
            self.metrics.create_impact_analysis(other_principal, self.cleanup.pk, beneficiaries=10)
        with self.assertRaises(Forbidden):
            self.metrics.create_impact_analysis(volunteer_principal, self.cleanup.pk, beneficiaries=10)
        with self.assertRaises(NotFound):
            self.metrics.create_impact_analysis(self.org_principal, 9999, beneficiaries=10)

    def test_negative_beneficiaries_rejected(self):
        with self.assertRaises(ValidationFailed):
            self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=-4)
        with self.assertRaises(ValidationFailed):
            self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries='many')
        self.assertFalse(ImpactAnalysis.objects.exists())

    def test_update_rejects_negative_totals(self):
        impact = self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10)

        with self.assertRaises(ValidationFailed) as cm:
            self.metrics.update_impact_analysis(self.org_principal, impact.pk, total_hours=-1)
        self.assertIn('total_hours', cm.exception.errors)

        impact.refresh_from_db()
        self.assertEqual(impact.total_hours, 0)

    def test_update_recalculate_and_delete(self):
        impact = self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10)

        updated = self.metrics.update_impact_analysis(self.org_principal, impact.pk, beneficiaries=55, region_covered='Venice')
        self.assertEqual((updated.beneficiaries, updated.region_covered), (55, 'Venice'))

        self.complete(self.alice, self.cleanup)
        refreshed = self.metrics.recalculate_impact_analysis(self.org_principal, impact.pk)
        self.assertEqual((refreshed.total_hours, refreshed.total_volunteers), (8, 1))
        self.assertEqual(refreshed.beneficiaries, 55)

        _, other_principal = self.make_organization('bluesea')
        with self.assertRaises(Forbidden):
            self.metrics.delete_impact_analysis(other_principal, impact.pk)

        self.metrics.delete_impact_analysis(self.org_principal, impact.pk)
        self.assertFalse(ImpactAnalysis.objects.exists())

    def test_update_rejects_unknown_fields(self):
        impact = self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10)

        with self.assertRaises(ValidationFailed):
            self.metrics.update_impact_analysis(self.org_principal, impact.pk, opportunity_id=self.drive.pk)

    def test_impact_analyses_for_organization(self):
        self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10)
        self.metrics.create_impact_analysis(self.org_principal, self.drive.pk, beneficiaries=20)
        _, other_principal = self.make_organization('bluesea')

        self.assertEqual(len(self.metrics.impact_analyses_for_organization(self.org_principal)), 2)
        self.assertEqual(len(self.metrics.impact_analyses_for_organization(other_principal)), 0)

    def test_get_impact_analysis_for_owner_only(self):
        impact = self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10)
        _, other_principal = self.make_organization('bluesea')
        _, volunteer_principal = self.make_volunteer('dave')

        self.assertEqual(self.metrics.get_impact_analysis(self.org_principal, impact.pk).pk, impact.pk)
        with self.assertRaises(Forbidden):
            self.metrics.get_impact_analysis(other_principal, impact.pk)
        with self.assertRaises(Forbidden):
            self.metrics.get_impact_analysis(volunteer_principal, impact.pk)
        with self.assertRaises(NotFound):
            self.metrics.get_impact_analysis(self.org_principal, 9999)

    def test_missing_principal_checked_before_lookup(self):
        impact = self.metrics.create_impact_analysis(self.org_principal, self.cleanup.pk, beneficiaries=10)

        for impact_id in (impact.pk, 9999):
            with self.subTest(impact_id=impact_id):
                with self.assertRaises(Unauthenticated):
                    self.metrics.get_impact_analysis(None, impact_id)
                with self.assertRaises(Unauthenticated):
                    self.metrics.update_impact_analysis(None, impact_id, beneficiaries=1)
                with self.assertRaises(Unauthenticated):
                    self.metrics.delete_impact_analysis(None, impact_id)
