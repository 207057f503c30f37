# engagement/services/metrics.py
"""
Derived metrics: contribution-hour portfolios for completed applications and
impact figures per opportunity and per organization.
"""

import logging
from dataclasses import dataclass, asdict

from ..exceptions import Conflict, InvalidState
from ..forms import ImpactAnalysisForm, bind, cleaned_or_raise
from ..models import Application
from .guard import Operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImpactFigures:
    total_hours: int
    total_volunteers: int


@dataclass(frozen=True)
class OrganizationImpact:
    total_hours: int
    total_volunteers: int
    total_opportunities: int
    completed_applications: int

    def as_dict(self):
        return asdict(self)


class MetricsPipeline:
    def __init__(self, repository, guard):
        self.repository = repository
        self.guard = guard

    # --- Portfolios ---

    def derive_portfolio(self, application, certificate=None, badge=None, feedback=None):
        """
        Record the volunteer's contribution for a completed application.

        Hours come from the opportunity window and the title is copied, so
        later edits to the opportunity leave the portfolio untouched.
        """
        if application.status != Application.Status.COMPLETED:
            raise InvalidState(
                f"Cannot create portfolio. Application status must be COMPLETED (current status: {application.status})"
            )
        opportunity = application.opportunity
        if self.repository.portfolio_exists(application.volunteer_id, opportunity.pk):
            raise Conflict("Portfolio already exists for this activity")

        portfolio = self.repository.create_portfolio(
            volunteer_id=application.volunteer_id,
            opportunity=opportunity,
            application=application,
            activity_title=opportunity.title,
            contribution_hours=opportunity.duration_hours,
            certificate=certificate or None,
            badge=badge or None,
            feedback=feedback or None,
        )
        logger.info(
            f"Portfolio {portfolio.pk} created for volunteer {application.volunteer_id} "
            f"with {portfolio.contribution_hours} contribution hours"
        )
        return portfolio

    def portfolios_for_volunteer(self, principal):
        volunteer = self.guard.authorize(principal, Operation.VIEW_OWN_PORTFOLIOS)
        return self.repository.portfolios(volunteer_id=volunteer.pk)

    def get_portfolio(self, principal, portfolio_id):
        self.guard.require_principal(principal)
        portfolio = self.repository.get_portfolio(portfolio_id)
        self.guard.authorize(principal, Operation.VIEW_PORTFOLIO, portfolio)
        return portfolio

    def portfolio_statistics(self, principal):
        portfolios = list(self.portfolios_for_volunteer(principal))
        return {
            'total_hours': sum(p.contribution_hours for p in portfolios),
            'total_activities': len(portfolios),
            'certificates_count': len([p for p in portfolios if p.certificate]),
            'badges_count': len([p for p in portfolios if p.badge]),
        }

    # --- Impact ---

    def compute_impact(self, opportunity_id):
        volunteer_ids = self.repository.completed_volunteer_ids(opportunity_id)
        total_hours = self.repository.portfolio_hours(opportunity_id, volunteer_ids) if volunteer_ids else 0
        return ImpactFigures(total_hours=total_hours, total_volunteers=len(volunteer_ids))

    def calculate_organization_impact(self, principal):
        # Volunteers are de-duplicated within each opportunity, not across them.
        organization = self.guard.authorize(principal, Operation.VIEW_OWN_IMPACT)
        opportunities = list(self.repository.opportunities_for_organization(organization.pk))

        total_hours = 0
        total_volunteers = 0
        completed_applications = 0
        for opportunity in opportunities:
            figures = self.compute_impact(opportunity.pk)
            total_hours += figures.total_hours
            total_volunteers += figures.total_volunteers
            completed_applications += self.repository.count_applications(
                opportunity.pk, [Application.Status.COMPLETED]
            )

        return OrganizationImpact(
            total_hours=total_hours,
            total_volunteers=total_volunteers,
            total_opportunities=len(opportunities),
            completed_applications=completed_applications,
        )

    def create_impact_analysis(self, principal, opportunity_id, beneficiaries, region_covered=None):
        self.guard.require_principal(principal)
        opportunity = self.repository.get_opportunity(opportunity_id)
        organization = self.guard.authorize(principal, Operation.CREATE_IMPACT, opportunity)

        with self.repository.unit_of_work():
            if self.repository.impact_analysis_exists(organization.pk, opportunity.pk):
                raise Conflict("Impact analysis already exists for this opportunity")
            figures = self.compute_impact(opportunity.pk)
            cleaned = cleaned_or_raise(bind(ImpactAnalysisForm, {
                'total_hours': figures.total_hours,
                'total_volunteers': figures.total_volunteers,
                'beneficiaries': beneficiaries,
                'region_covered': region_covered or opportunity.location,
            }))
            impact = self.repository.create_impact_analysis(organization=organization, opportunity=opportunity, **cleaned)
        logger.info(
            f"Impact analysis {impact.pk} created with {impact.total_hours} hours "
            f"and {impact.total_volunteers} volunteers"
        )
        return impact

    def get_impact_analysis(self, principal, impact_id):
        self.guard.require_principal(principal)
        impact = self.repository.get_impact_analysis(impact_id)
        self.guard.authorize(principal, Operation.VIEW_IMPACT, impact)
        return impact

    def update_impact_analysis(self, principal, impact_id, **fields):
        self.guard.require_principal(principal)
        impact = self.repository.get_impact_analysis(impact_id)
        self.guard.authorize(principal, Operation.UPDATE_IMPACT, impact)

        cleaned = cleaned_or_raise(bind(ImpactAnalysisForm, fields, instance=impact))
        for name, value in cleaned.items():
            setattr(impact, name, value)
        with self.repository.unit_of_work():
            self.repository.save(impact)
        return impact

    def recalculate_impact_analysis(self, principal, impact_id):
        """Re-seed totals from the current completed applications."""
        self.guard.require_principal(principal)
        impact = self.repository.get_impact_analysis(impact_id)
        self.guard.authorize(principal, Operation.UPDATE_IMPACT, impact)

        figures = self.compute_impact(impact.opportunity_id)
        impact.total_hours = figures.total_hours
        impact.total_volunteers = figures.total_volunteers
        with self.repository.unit_of_work():
            self.repository.save(impact)
        return impact

    def delete_impact_analysis(self, principal, impact_id):
        self.guard.require_principal(principal)
        impact = self.repository.get_impact_analysis(impact_id)
        self.guard.authorize(principal, Operation.DELETE_IMPACT, impact)
        with self.repository.unit_of_work():
            self.repository.delete(impact)
        logger.info(f"Impact analysis {impact_id} deleted")
        return impact

    def impact_analyses_for_organization(self, principal):
        organization = self.guard.authorize(principal, Operation.VIEW_OWN_IMPACT)
        return self.repository.impact_analyses(organization_id=organization.pk)
