# engagement/forms.py
from django import forms
from django.forms.models import model_to_dict

from .exceptions import ValidationFailed
from .models import ImpactAnalysis, Opportunity


class OpportunityForm(forms.ModelForm):
    """
    Cleans the fields an organization may set on an Opportunity.
    Accepts datetimes, dates and ISO-8601 strings for the window.
    """
    class Meta:
        model = Opportunity
        fields = ['title', 'description', 'location', 'category', 'start_date', 'end_date', 'capacity', 'required_skills']

    def clean_required_skills(self):
        skills = self.cleaned_data.get('required_skills')
        if skills in (None, ''):
            return []
        if not isinstance(skills, list):
            raise forms.ValidationError("Required skills must be a list.")
        return skills

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get('start_date')
        end = cleaned_data.get('end_date')
        if start and end and start >= end:
            raise forms.ValidationError("End date must be after start date")
        return cleaned_data


class ImpactAnalysisForm(forms.ModelForm):
    class Meta:
        model = ImpactAnalysis
        fields = ['total_hours', 'total_volunteers', 'beneficiaries', 'region_covered']


def bind(form_class, fields, instance=None):
    """
    Bind fields to form_class. With an instance, fields not supplied keep the
    instance's current values, so a partial update is validated as a whole.
    """
    allowed = form_class._meta.fields
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValidationFailed(f"Unknown fields: {', '.join(sorted(unknown))}")

    data = model_to_dict(instance, fields=allowed) if instance is not None else {}
    data.update({name: value for name, value in fields.items() if value is not None})
    return form_class(data, instance=instance)


def cleaned_or_raise(form):
    """Return form.cleaned_data, or raise ValidationFailed carrying the form's errors."""
    if form.is_valid():
        return form.cleaned_data
    errors = {name: list(dict.fromkeys(messages)) for name, messages in form.errors.items()}
    summary = list(dict.fromkeys(message for messages in errors.values() for message in messages))
    raise ValidationFailed("; ".join(summary), errors=errors)
