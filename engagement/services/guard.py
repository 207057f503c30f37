# engagement/services/guard.py
"""
Ownership / authorization guard.

A request arrives with an already verified principal (user id + role). The
guard resolves it to the owning profile and makes one decision per operation
from AUTHORIZATION_RULES.
"""

import enum
import logging
from dataclasses import dataclass

from django.core.exceptions import ImproperlyConfigured

from ..exceptions import Forbidden, Unauthenticated
from ..models import Application, ImpactAnalysis, Opportunity, User

logger = logging.getLogger(__name__)

VOLUNTEER = User.UserType.VOLUNTEER
ORGANIZATION = User.UserType.ORGANIZATION


@dataclass(frozen=True)
class Principal:
    id: int
    role: str

    @classmethod
    def from_user(cls, user):
        if user is None or not user.is_authenticated:
            raise Unauthenticated()
        return cls(id=user.pk, role=user.user_type)


class Operation(enum.Enum):
    APPLY = 'apply'
    TRANSITION = 'transition'
    WITHDRAW = 'withdraw'
    VIEW_APPLICATION = 'view_application'
    LIST_OWN_APPLICATIONS = 'list_own_applications'
    LIST_OPPORTUNITY_APPLICATIONS = 'list_opportunity_applications'
    CREATE_OPPORTUNITY = 'create_opportunity'
    UPDATE_OPPORTUNITY = 'update_opportunity'
    DELETE_OPPORTUNITY = 'delete_opportunity'
    VIEW_OPPORTUNITY = 'view_opportunity'
    LIST_OWN_OPPORTUNITIES = 'list_own_opportunities'
    CREATE_PORTFOLIO = 'create_portfolio'
    VIEW_PORTFOLIO = 'view_portfolio'
    VIEW_OWN_PORTFOLIOS = 'view_own_portfolios'
    CREATE_IMPACT = 'create_impact'
    UPDATE_IMPACT = 'update_impact'
    DELETE_IMPACT = 'delete_impact'
    VIEW_IMPACT = 'view_impact'
    VIEW_OWN_IMPACT = 'view_own_impact'


def _organization_of(target):
    """User id of the organization that owns target."""
    if isinstance(target, Opportunity):
        return target.organization_id
    if isinstance(target, Application):
        return target.opportunity.organization_id
    if isinstance(target, ImpactAnalysis):
        return target.organization_id
    raise TypeError(f"No owning organization for {type(target).__name__}")


def _volunteer_of(target):
    return target.volunteer_id


def _anyone(target):
    return None


# operation -> {role allowed to act: owner resolver}
# A resolver returning None means any principal of that role may act.
# An empty mapping means no principal may act (system-triggered only).
AUTHORIZATION_RULES = {
    Operation.APPLY: {VOLUNTEER: _anyone},
    Operation.TRANSITION: {ORGANIZATION: _organization_of},
    Operation.WITHDRAW: {VOLUNTEER: _volunteer_of},
    Operation.VIEW_APPLICATION: {VOLUNTEER: _volunteer_of, ORGANIZATION: _organization_of},
    Operation.LIST_OWN_APPLICATIONS: {VOLUNTEER: _anyone, ORGANIZATION: _anyone},
    Operation.LIST_OPPORTUNITY_APPLICATIONS: {ORGANIZATION: _organization_of},
    Operation.CREATE_OPPORTUNITY: {ORGANIZATION: _anyone},
    Operation.UPDATE_OPPORTUNITY: {ORGANIZATION: _organization_of},
    Operation.DELETE_OPPORTUNITY: {ORGANIZATION: _organization_of},
    Operation.VIEW_OPPORTUNITY: {VOLUNTEER: _anyone, ORGANIZATION: _organization_of},
    Operation.LIST_OWN_OPPORTUNITIES: {ORGANIZATION: _anyone},
    Operation.CREATE_PORTFOLIO: {},
    Operation.VIEW_PORTFOLIO: {VOLUNTEER: _volunteer_of},
    Operation.VIEW_OWN_PORTFOLIOS: {VOLUNTEER: _anyone},
    Operation.CREATE_IMPACT: {ORGANIZATION: _organization_of},
    Operation.UPDATE_IMPACT: {ORGANIZATION: _organization_of},
    Operation.DELETE_IMPACT: {ORGANIZATION: _organization_of},
    Operation.VIEW_IMPACT: {ORGANIZATION: _organization_of},
    Operation.VIEW_OWN_IMPACT: {ORGANIZATION: _anyone},
}

_unruled = set(Operation) - set(AUTHORIZATION_RULES)
if _unruled:
    raise ImproperlyConfigured(f"Operations without an authorization rule: {sorted(op.value for op in _unruled)}")


class OwnershipGuard:
    def __init__(self, repository):
        self.repository = repository

    def require_principal(self, principal):
        """Refuse a missing principal before anything is looked up on its behalf."""
        if principal is None:
            raise Unauthenticated()
        return principal

    def resolve_profile(self, principal):
        """Volunteer -> VolunteerProfile, organization -> OrganizationProfile."""
        self.require_principal(principal)
        if principal.role == VOLUNTEER:
            return self.repository.get_volunteer(principal.id)
        if principal.role == ORGANIZATION:
            return self.repository.get_organization(principal.id)
        raise Forbidden(f"Unknown role: {principal.role}")

    def authorize(self, principal, operation, target=None):
        """
        Decide whether principal may perform operation on target.

        Returns the principal's profile on success. Raises Unauthenticated when
        no principal is given, Forbidden when the role is not allowed or the
        profile does not own target, NotFound when the profile is missing.
        """
        self.require_principal(principal)

        rule = AUTHORIZATION_RULES[operation]
        if not rule:
            logger.warning(f"Refused {operation.value} for principal {principal.id}: system-triggered operation")
            raise Forbidden(f"{operation.value} is performed by the system, not by a user")

        owner_of = rule.get(principal.role)
        if owner_of is None:
            logger.warning(f"Refused {operation.value} for principal {principal.id}: role {principal.role} not allowed")
            allowed = ", ".join(sorted(rule))
            raise Forbidden(f"Access denied. Requires one of the following roles: {allowed}")

        profile = self.resolve_profile(principal)

        if target is not None:
            owner_id = owner_of(target)
            if owner_id is not None and owner_id != profile.pk:
                logger.warning(f"Refused {operation.value} for principal {principal.id}: not the owner of {type(target).__name__} {target.pk}")
                raise Forbidden(f"You are not authorized to {operation.value.replace('_', ' ')} this {type(target).__name__.lower()}")
        return profile
