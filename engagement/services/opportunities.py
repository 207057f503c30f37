# engagement/services/opportunities.py
import logging

from django.utils import timezone

from ..exceptions import Conflict, Expired
from ..forms import OpportunityForm, bind, cleaned_or_raise
from ..models import Application
from .guard import Operation

logger = logging.getLogger(__name__)


class OpportunityService:
    def __init__(self, repository, guard, capacity, clock=timezone.now):
        self.repository = repository
        self.guard = guard
        self.capacity = capacity
        self.clock = clock

    def create_opportunity(self, principal, **fields):
        organization = self.guard.authorize(principal, Operation.CREATE_OPPORTUNITY)
        cleaned = cleaned_or_raise(bind(OpportunityForm, fields))

        with self.repository.unit_of_work():
            opportunity = self.repository.create_opportunity(organization=organization, **cleaned)
        logger.info(f"Organization {organization.pk} created opportunity {opportunity.pk}")
        return opportunity

    def update_opportunity(self, principal, opportunity_id, **fields):
        """
        Change the supplied fields of an opportunity that has not ended yet.
        Unsupplied fields keep their values; the result is validated as a whole.
        """
        self.guard.require_principal(principal)
        opportunity = self.repository.get_opportunity(opportunity_id)
        self.guard.authorize(principal, Operation.UPDATE_OPPORTUNITY, opportunity)

        with self.capacity.admission(opportunity_id) as opportunity:
            if self.clock() > opportunity.end_date:
                raise Expired("This opportunity has already ended and can no longer be changed")

            cleaned = cleaned_or_raise(bind(OpportunityForm, fields, instance=opportunity))
            accepted = self.capacity.accepted_count(opportunity.pk)
            if cleaned['capacity'] < accepted:
                raise Conflict(
                    f"Capacity cannot be lower than the {accepted} applications already accepted"
                )

            for name, value in cleaned.items():
                setattr(opportunity, name, value)
            self.repository.save(opportunity)

        logger.info(f"Opportunity {opportunity_id} updated: {', '.join(sorted(fields)) or 'no changes'}")
        return opportunity

    def delete_opportunity(self, principal, opportunity_id):
        """Delete an opportunity that has no pending, accepted or completed applications."""
        self.guard.require_principal(principal)
        opportunity = self.repository.get_opportunity(opportunity_id)
        self.guard.authorize(principal, Operation.DELETE_OPPORTUNITY, opportunity)

        with self.capacity.admission(opportunity_id) as opportunity:
            dependents = self.capacity.blocking_dependents(opportunity.pk)
            if dependents:
                raise Conflict(
                    f"Cannot delete opportunity with {dependents} pending, accepted or completed application(s)"
                )
            self.repository.delete_applications(opportunity.pk, [Application.Status.REJECTED])
            self.repository.delete(opportunity)

        logger.info(f"Opportunity {opportunity_id} deleted")
        return opportunity

    def get_opportunity(self, principal, opportunity_id):
        self.guard.require_principal(principal)
        opportunity = self.repository.get_opportunity(opportunity_id)
        self.guard.authorize(principal, Operation.VIEW_OPPORTUNITY, opportunity)
        return opportunity

    def opportunities_for_organization(self, principal):
        organization = self.guard.authorize(principal, Operation.LIST_OWN_OPPORTUNITIES)
        return self.repository.opportunities_for_organization(organization.pk)
