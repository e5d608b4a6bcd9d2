from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _

from ..conditions import normalize
from .base import BaseField

TRUE_STRINGS = frozenset({'1', 'true', 'on', 'yes'})
FALSE_STRINGS = frozenset({'0', 'false', 'off', 'no', ''})


def _invalid_choice(value):
    return ValidationError(
        _("Select a valid choice. %(value)s is not one of the available choices.")
        % {'value': value},
        code='invalid_choice')


class ChoiceField(BaseField):
    """select and radio"""

    input_type = 'select'

    def _lookup(self):
        # Compare as strings: "3" posted for an option declared as 3.
        return {normalize(value): value for value in self.definition.option_values()}

    def to_python(self, value):
        if self.definition.is_multi_valued:
            if not isinstance(value, (list, tuple)):
                value = [value]
            return [v for v in value if not self.is_empty(v)]
        if isinstance(value, (list, tuple)):
            raise _invalid_choice(value)
        return value

    def clean_value(self, value):
        lookup = self._lookup()
        if isinstance(value, list):
            if not value and self.required:
                raise ValidationError(
                    _("%(label)s is required.") % {'label': self.label},
                    code='required')
            cleaned = []
            for item in value:
                key = normalize(item)
                if key not in lookup:
                    raise _invalid_choice(item)
                cleaned.append(lookup[key])
            return cleaned

        key = normalize(value)
        if key not in lookup:
            raise _invalid_choice(value)
        return lookup[key]

    def empty_result(self):
        return [] if self.definition.is_multi_valued else ''


class RadioField(ChoiceField):
    input_type = 'radio'


class SwitchField(BaseField):
    """Boolean toggle. Absence means off."""

    input_type = 'checkbox'

    def is_empty(self, value):
        # False is a real answer for a boolean field.
        return value is None

    def to_python(self, value):
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in TRUE_STRINGS:
                return True
            if lowered in FALSE_STRINGS:
                return False
        raise _invalid_choice(value)

    def clean_value(self, value):
        if self.required and value is False:
            raise ValidationError(
                _("%(label)s is required.") % {'label': self.label},
                code='required')
        return value

    def clean(self):
        if self.raw_value is None:
            if self.required:
                raise ValidationError(
                    _("%(label)s is required.") % {'label': self.label},
                    code='required')
            return False
        value = self.clean_value(self.to_python(self.raw_value))
        self.run_custom_validators(value)
        return value


class CheckboxField(SwitchField):
    """
    A single checkbox behaves like a switch. With options it is a group
    whose value is the list of checked option values.
    """

    def __init__(self, definition, value, stored_value=None, required=None):
        super().__init__(definition, value, stored_value, required)
        self._group = ChoiceField(definition, value, stored_value, required)

    def clean(self):
        if self.definition.options:
            if self.raw_value is None:
                if self.required:
                    raise ValidationError(
                        _("%(label)s is required.") % {'label': self.label},
                        code='required')
                return []
            return self._group.clean()
        return super().clean()
