# engagement/tests/helpers.py
from datetime import datetime, timezone as dt_timezone

from ..models import Application, Opportunity, OrganizationProfile, User, VolunteerProfile
from ..services import Principal, get_engagement_services

# Fixed "now" for every test: the morning before the default opportunity window.
NOW = datetime(2024, 1, 1, 6, 0, tzinfo=dt_timezone.utc)
WINDOW_START = datetime(2024, 1, 1, 8, 0, tzinfo=dt_timezone.utc)
WINDOW_END = datetime(2024, 1, 1, 16, 0, tzinfo=dt_timezone.utc)


class EngagementFixtures:
    """Builders shared by the engagement test cases."""

    clock_now = NOW

    def build_services(self, **kwargs):
        kwargs.setdefault('lock_timeout', 2)
        return get_engagement_services(clock=lambda: self.clock_now, **kwargs)

    def make_volunteer(self, username, full_name=None):
        user = User.objects.create_user(username=username, password='pass1234', user_type=User.UserType.VOLUNTEER)
        profile = VolunteerProfile.objects.create(user=user, full_name=full_name or username.title())
        return profile, Principal.from_user(user)

    def make_organization(self, username, name=None):
        user = User.objects.create_user(username=username, password='pass1234', user_type=User.UserType.ORGANIZATION)
        profile = OrganizationProfile.objects.create(user=user, organization_name=name or username.title())
        return profile, Principal.from_user(user)

    def make_opportunity(self, organization, capacity=1, start=WINDOW_START, end=WINDOW_END, title='Beach Cleanup', location='Santa Monica'):
        return Opportunity.objects.create(
            organization=organization,
            title=title,
            location=location,
            start_date=start,
            end_date=end,
            capacity=capacity,
        )

    def make_application(self, volunteer, opportunity, status=Application.Status.PENDING):
        return Application.objects.create(volunteer=volunteer, opportunity=opportunity, status=status)
