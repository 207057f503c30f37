import math

from django.db import models
from django.db.models import F, Q
from django.contrib.auth.models import AbstractUser
from django.conf import settings
from django.core.validators import MinValueValidator


# --- CORE USER AND PROFILE MODELS ---
class User(AbstractUser):
    class UserType(models.TextChoices):
        VOLUNTEER = 'VOLUNTEER', 'Volunteer'
        ORGANIZATION = 'ORGANIZATION', 'Organization'
    user_type = models.CharField(max_length=12, choices=UserType.choices, default=UserType.VOLUNTEER)

    def __str__(self):
        return f"{self.username} ({self.get_user_type_display()})" # type: ignore


class VolunteerProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, primary_key=True, related_name='volunteer_profile')
    full_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=15, blank=True, null=True)
    skills = models.JSONField(default=list, blank=True, help_text="e.g., ['Driving', 'Cooking', 'Medical']")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.full_name


class OrganizationProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, primary_key=True, related_name='organization_profile')
    organization_name = models.CharField(max_length=255)
    address = models.TextField(blank=True, default='')
    contact_number = models.CharField(max_length=15, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.organization_name


# --- OPPORTUNITIES AND APPLICATIONS ---
class Opportunity(models.Model):
    organization = models.ForeignKey(OrganizationProfile, on_delete=models.CASCADE, related_name='opportunities')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    location = models.CharField(max_length=255, blank=True, default='')
    category = models.CharField(max_length=100, blank=True, default='')
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)], help_text="Maximum number of simultaneously accepted applications")
    required_skills = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(start_date__lt=F('end_date')), name='opportunity_start_before_end', violation_error_message='End date must be after start date'),
            models.CheckConstraint(condition=Q(capacity__gt=0), name='opportunity_capacity_positive', violation_error_message='Capacity must be at least 1'),
        ]

    def __str__(self):
        return f"{self.title} by {self.organization.organization_name}"

    @property
    def duration_hours(self):
        """Length of the opportunity window, rounded half up to whole hours."""
        return math.floor((self.end_date - self.start_date).total_seconds() / 3600 + 0.5)


class Application(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending Review'
        ACCEPTED = 'ACCEPTED', 'Accepted'
        REJECTED = 'REJECTED', 'Rejected'
        COMPLETED = 'COMPLETED', 'Completed'

    volunteer = models.ForeignKey(VolunteerProfile, on_delete=models.CASCADE, related_name='applications')
    opportunity = models.ForeignKey(Opportunity, on_delete=models.CASCADE, related_name='applications')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)
    position = models.CharField(max_length=255, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    apply_date = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['volunteer', 'opportunity'], name='one_application_per_volunteer_opportunity'),
        ]

    def __str__(self):
        return f"{self.volunteer.full_name} -> {self.opportunity.title} ({self.status})"


# --- DERIVED METRICS ---
class Portfolio(models.Model):
    volunteer = models.ForeignKey(VolunteerProfile, on_delete=models.CASCADE, related_name='portfolios')
    opportunity = models.ForeignKey(Opportunity, on_delete=models.SET_NULL, null=True, blank=True, related_name='portfolios')
    application = models.OneToOneField(Application, on_delete=models.SET_NULL, null=True, blank=True, related_name='portfolio')
    activity_title = models.CharField(max_length=255, help_text="Opportunity title at completion time")
    contribution_hours = models.PositiveIntegerField(default=0)
    certificate = models.CharField(max_length=255, blank=True, null=True)
    badge = models.CharField(max_length=100, blank=True, null=True)
    feedback = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['volunteer', 'opportunity'], name='one_portfolio_per_volunteer_activity'),
        ]

    def __str__(self):
        return f"{self.volunteer.full_name} - {self.activity_title} ({self.contribution_hours}h)"


class ImpactAnalysis(models.Model):
    organization = models.ForeignKey(OrganizationProfile, on_delete=models.CASCADE, related_name='impact_analyses')
    opportunity = models.ForeignKey(Opportunity, on_delete=models.CASCADE, related_name='impact_analyses')
    total_hours = models.PositiveIntegerField(default=0)
    total_volunteers = models.PositiveIntegerField(default=0)
    beneficiaries = models.PositiveIntegerField(default=0)
    region_covered = models.CharField(max_length=255, blank=True, null=True)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['organization', 'opportunity'], name='one_impact_analysis_per_opportunity'),
        ]

    def __str__(self):
        return f"Impact of {self.opportunity.title}: {self.total_hours}h / {self.total_volunteers} volunteers"
