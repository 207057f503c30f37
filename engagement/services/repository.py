# engagement/services/repository.py
"""
Data access for the engagement services.

Services never touch model managers directly; they receive a repository at
construction. DjangoRepository is the ORM-backed implementation and the
boundary where database exceptions become engagement errors.
"""

import logging
from contextlib import contextmanager

from django.db import transaction, IntegrityError, OperationalError
from django.db.models import Count, Sum

from ..exceptions import Conflict, NotFound, TransientFailure
from ..models import (
    Application, ImpactAnalysis, Opportunity, OrganizationProfile, Portfolio, VolunteerProfile,
)

logger = logging.getLogger(__name__)


class DjangoRepository:

    @contextmanager
    def unit_of_work(self, conflict_message=None):
        """
        All-or-nothing block. Integrity violations surface as Conflict and
        database outages or lock waits as TransientFailure.
        """
        try:
            with transaction.atomic():
                yield
        except IntegrityError as e:
            logger.warning(f"Integrity violation rolled back: {e}")
            raise Conflict(conflict_message) from e
        except OperationalError as e:
            logger.error(f"Persistence fault: {e}")
            raise TransientFailure() from e

    # --- Profiles ---

    def get_volunteer(self, user_id):
        try:
            return VolunteerProfile.objects.get(pk=user_id)
        except VolunteerProfile.DoesNotExist:
            raise NotFound("Volunteer profile not found")

    def get_organization(self, user_id):
        try:
            return OrganizationProfile.objects.get(pk=user_id)
        except OrganizationProfile.DoesNotExist:
            raise NotFound("Organization profile not found")

    # --- Opportunities ---

    def get_opportunity(self, opportunity_id, for_update=False):
        qs = Opportunity.objects.all()
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=opportunity_id)
        except Opportunity.DoesNotExist:
            raise NotFound("Opportunity not found")

    def create_opportunity(self, **fields):
        return Opportunity.objects.create(**fields)

    def opportunities_for_organization(self, organization_id):
        return Opportunity.objects.filter(organization_id=organization_id).order_by('-created_at')

    # --- Applications ---

    def get_application(self, application_id, for_update=False):
        qs = Application.objects.all()
        if for_update:
            qs = qs.select_for_update()
        else:
            qs = qs.select_related('volunteer', 'opportunity')
        try:
            return qs.get(pk=application_id)
        except Application.DoesNotExist:
            raise NotFound("Application not found")

    def application_exists(self, volunteer_id, opportunity_id):
        return Application.objects.filter(volunteer_id=volunteer_id, opportunity_id=opportunity_id).exists()

    def create_application(self, volunteer, opportunity):
        with self.unit_of_work(conflict_message="You have already applied to this opportunity"):
            return Application.objects.create(
                volunteer=volunteer,
                opportunity=opportunity,
                status=Application.Status.PENDING,
            )

    def count_applications(self, opportunity_id, statuses):
        return Application.objects.filter(opportunity_id=opportunity_id, status__in=list(statuses)).count()

    def applications(self, **filters):
        return (
            Application.objects.filter(**filters)
            .select_related('volunteer', 'opportunity', 'opportunity__organization')
            .order_by('-apply_date')
        )

    def status_counts(self, **filters):
        rows = Application.objects.filter(**filters).values('status').annotate(count=Count('id'))
        return {row['status']: row['count'] for row in rows}

    def completed_volunteer_ids(self, opportunity_id):
        return set(
            Application.objects.filter(
                opportunity_id=opportunity_id,
                status=Application.Status.COMPLETED,
            ).values_list('volunteer_id', flat=True).distinct()
        )

    def delete_applications(self, opportunity_id, statuses):
        deleted, _ = Application.objects.filter(opportunity_id=opportunity_id, status__in=list(statuses)).delete()
        return deleted

    # --- Portfolios ---

    def portfolio_exists(self, volunteer_id, opportunity_id):
        return Portfolio.objects.filter(volunteer_id=volunteer_id, opportunity_id=opportunity_id).exists()

    def create_portfolio(self, **fields):
        with self.unit_of_work(conflict_message="Portfolio already exists for this activity"):
            return Portfolio.objects.create(**fields)

    def get_portfolio(self, portfolio_id):
        try:
            return Portfolio.objects.select_related('opportunity').get(pk=portfolio_id)
        except Portfolio.DoesNotExist:
            raise NotFound("Portfolio not found")

    def portfolios(self, **filters):
        return Portfolio.objects.filter(**filters).order_by('-created_at')

    def portfolio_hours(self, opportunity_id, volunteer_ids):
        total = Portfolio.objects.filter(
            opportunity_id=opportunity_id,
            volunteer_id__in=list(volunteer_ids),
        ).aggregate(total=Sum('contribution_hours'))['total']
        return total or 0

    # --- Impact analyses ---

    def get_impact_analysis(self, impact_id):
        qs = ImpactAnalysis.objects.select_related('opportunity')
        try:
            return qs.get(pk=impact_id)
        except ImpactAnalysis.DoesNotExist:
            raise NotFound("Impact analysis not found")

    def impact_analysis_exists(self, organization_id, opportunity_id):
        return ImpactAnalysis.objects.filter(organization_id=organization_id, opportunity_id=opportunity_id).exists()

    def create_impact_analysis(self, **fields):
        with self.unit_of_work(conflict_message="Impact analysis already exists for this opportunity"):
            return ImpactAnalysis.objects.create(**fields)

    def impact_analyses(self, **filters):
        return ImpactAnalysis.objects.filter(**filters).select_related('opportunity').order_by('-last_updated')

    # --- Generic writes ---

    def save(self, instance, update_fields=None):
        instance.save(update_fields=update_fields)
        return instance

    def delete(self, instance):
        instance.delete()
        return instance
