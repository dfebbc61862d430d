"""
Registration service - the attendee registration wizard and answer validation.
"""

from .field_validation import coerce_value, validate_answers, validate_field
from .wizard import RegistrationWizard, WizardError, WizardStep

__all__ = [
    'RegistrationWizard',
    'WizardError',
    'WizardStep',
    'coerce_value',
    'validate_answers',
    'validate_field'
]
