from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _

EMPTY_VALUES = (None, '', [], (), {})


@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    message: str = ''
    code: str = ''


VALID = ValidationOutcome(True)


class BaseField:
    """
    A declared field bound to one submitted value.

    Subclasses implement `clean_value()` (type checks on a non-empty value)
    and may override `to_python()`. Nothing here does I/O: validation is safe
    to run speculatively.
    """

    input_type = 'text'

    def __init__(self, definition, value, stored_value=None, required=None):
        self.definition = definition
        self.raw_value = value
        self.stored_value = stored_value
        self.required = definition.required if required is None else required
        self._cleaned = None
        self._validated = False

    @property
    def label(self):
        return self.definition.label or self.definition.name

    def is_empty(self, value):
        if isinstance(value, str):
            return value.strip() == ''
        return value in EMPTY_VALUES

    # ==========================================
    # Validation
    # ==========================================

    def validate(self):
        try:
            self._cleaned = self.clean()
        except ValidationError as e:
            self._validated = False
            return ValidationOutcome(False, _first_message(e), e.code or 'invalid')
        self._validated = True
        return VALID

    def clean(self):
        value = self.raw_value
        if not self.is_empty(value):
            value = self.to_python(value)

        # Checked after to_python(): markup-only text sanitizes to nothing.
        if self.is_empty(value):
            if self.required and not self.satisfied_by_stored_value():
                raise ValidationError(
                    _("%(label)s is required.") % {'label': self.label},
                    code='required')
            return self.empty_result()

        value = self.clean_value(value)
        self.run_custom_validators(value)
        return value

    def satisfied_by_stored_value(self):
        return False

    def empty_result(self):
        return ''

    def to_python(self, value):
        return value

    def clean_value(self, value):
        return value

    def run_custom_validators(self, value):
        for func in self.definition.validators:
            result = func(value, self.definition)
            if result is not True:
                message = result if isinstance(result, str) else _("Custom validation failed.")
                raise ValidationError(message, code='custom')

    # ==========================================
    # Output
    # ==========================================

    def sanitized_value(self):
        """
        Storage-ready value. Only meaningful after a successful validate().
        """
        if not self._validated:
            outcome = self.validate()
            if not outcome.valid:
                raise ValueError(
                    f"Field '{self.definition.name}' did not validate.")
        return self._cleaned


def _first_message(error):
    messages = error.messages
    return messages[0] if messages else str(error)
