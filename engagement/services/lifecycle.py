# engagement/services/lifecycle.py
"""
Application lifecycle engine. The only writer of Application.status.

    PENDING --> ACCEPTED --> COMPLETED
        \\
         --> REJECTED

Organizations drive every transition; volunteers create applications and may
withdraw them while they are still PENDING or REJECTED.
"""

import logging

from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from ..exceptions import CapacityExceeded, Conflict, Expired, InvalidState, InvalidTransition
from ..models import Application
from .guard import Operation, VOLUNTEER

logger = logging.getLogger(__name__)

Status = Application.Status

TRANSITIONS = {
    Status.PENDING: frozenset({Status.ACCEPTED, Status.REJECTED}),
    Status.ACCEPTED: frozenset({Status.COMPLETED}),
    Status.REJECTED: frozenset(),
    Status.COMPLETED: frozenset(),
}

_unmapped = set(Status) - set(TRANSITIONS)
if _unmapped:
    raise ImproperlyConfigured(f"Application statuses missing from TRANSITIONS: {sorted(_unmapped)}")

# Statuses whose application record may no longer be deleted.
ENGAGED_STATUSES = frozenset({Status.ACCEPTED, Status.COMPLETED})

# Extra fields persisted alongside a transition, per target status.
TRANSITION_FIELDS = ('position', 'description')
PORTFOLIO_FIELDS = ('certificate', 'badge', 'feedback')


def parse_status(value):
    try:
        return Status(value)
    except ValueError:
        raise InvalidTransition(
            f"Invalid status '{value}'. Must be PENDING, ACCEPTED, REJECTED, or COMPLETED"
        )


class LifecycleEngine:
    def __init__(self, repository, guard, capacity, metrics, clock=timezone.now):
        self.repository = repository
        self.guard = guard
        self.capacity = capacity
        self.metrics = metrics
        self.clock = clock

    # --- Writes ---

    def apply(self, principal, opportunity_id):
        volunteer = self.guard.authorize(principal, Operation.APPLY)

        with self.capacity.admission(opportunity_id) as opportunity:
            if self.repository.application_exists(volunteer.pk, opportunity.pk):
                raise Conflict("You have already applied to this opportunity")
            if not self.capacity.has_room(opportunity):
                raise CapacityExceeded()
            if self.clock() > opportunity.end_date:
                raise Expired()
            application = self.repository.create_application(volunteer=volunteer, opportunity=opportunity)

        logger.info(f"Volunteer {volunteer.pk} applied to opportunity {opportunity_id} (application {application.pk})")
        return application

    def transition(self, principal, application_id, target_status, extra=None):
        """
        Move an application to target_status on behalf of the owning organization.

        Acceptance re-reads the accepted count while holding the opportunity,
        so two concurrent accepts at the capacity boundary cannot both commit.
        Completing an application derives the volunteer's portfolio in the
        same transaction.
        """
        self.guard.require_principal(principal)
        target_status = parse_status(target_status)
        extra = extra or {}

        application = self.repository.get_application(application_id)
        self.guard.authorize(principal, Operation.TRANSITION, application)

        with self.capacity.admission(application.opportunity_id) as opportunity:
            application = self.repository.get_application(application_id, for_update=True)
            current = Status(application.status)
            if target_status not in TRANSITIONS[current]:
                raise InvalidTransition(f"Cannot move application from {current} to {target_status}")

            if target_status == Status.ACCEPTED and not self.capacity.has_room(opportunity):
                raise CapacityExceeded("Cannot accept application. Opportunity has reached its capacity")
            if target_status in ENGAGED_STATUSES:
                self._apply_extra(application, extra)

            application.status = target_status
            self.repository.save(application)

            if target_status == Status.COMPLETED:
                application.opportunity = opportunity
                self.metrics.derive_portfolio(
                    application, **{name: extra.get(name) for name in PORTFOLIO_FIELDS}
                )

        logger.info(f"Application {application_id} moved from {current} to {target_status} by principal {principal.id}")
        return application

    def accept(self, principal, application_id, position=None, description=None):
        return self.transition(principal, application_id, Status.ACCEPTED,
                               {'position': position, 'description': description})

    def reject(self, principal, application_id):
        return self.transition(principal, application_id, Status.REJECTED)

    def complete(self, principal, application_id, **extra):
        return self.transition(principal, application_id, Status.COMPLETED, extra)

    def withdraw(self, principal, application_id):
        """Delete a PENDING or REJECTED application on behalf of its volunteer."""
        self.guard.require_principal(principal)
        application = self.repository.get_application(application_id)
        self.guard.authorize(principal, Operation.WITHDRAW, application)

        with self.capacity.admission(application.opportunity_id):
            application = self.repository.get_application(application_id, for_update=True)
            if application.status in ENGAGED_STATUSES:
                raise InvalidState("Cannot withdraw/delete an accepted or completed application")
            self.repository.delete(application)

        logger.info(f"Application {application_id} withdrawn by volunteer {principal.id}")
        return application

    def _apply_extra(self, application, extra):
        for name in TRANSITION_FIELDS:
            value = extra.get(name)
            if value is not None:
                setattr(application, name, value)

    # --- Reads ---

    def get_application(self, principal, application_id):
        self.guard.require_principal(principal)
        application = self.repository.get_application(application_id)
        self.guard.authorize(principal, Operation.VIEW_APPLICATION, application)
        return application

    def my_applications(self, principal):
        """A volunteer's own applications, or every application to an organization's opportunities."""
        return self.repository.applications(**self._scope(principal))

    def applications_for_opportunity(self, principal, opportunity_id):
        self.guard.require_principal(principal)
        opportunity = self.repository.get_opportunity(opportunity_id)
        self.guard.authorize(principal, Operation.LIST_OPPORTUNITY_APPLICATIONS, opportunity)
        return self.repository.applications(opportunity_id=opportunity.pk)

    def applications_by_status(self, principal, status):
        try:
            status = Status(status)
        except ValueError:
            raise InvalidState(f"Invalid status '{status}'. Must be PENDING, ACCEPTED, REJECTED, or COMPLETED")
        return self.repository.applications(status=status, **self._scope(principal))

    def application_statistics(self, principal):
        counts = self.repository.status_counts(**self._scope(principal))
        return {
            'total': sum(counts.values()),
            'pending': counts.get(Status.PENDING, 0),
            'accepted': counts.get(Status.ACCEPTED, 0),
            'rejected': counts.get(Status.REJECTED, 0),
            'completed': counts.get(Status.COMPLETED, 0),
        }

    def _scope(self, principal):
        profile = self.guard.authorize(principal, Operation.LIST_OWN_APPLICATIONS)
        if principal.role == VOLUNTEER:
            return {'volunteer_id': profile.pk}
        return {'opportunity__organization_id': profile.pk}
