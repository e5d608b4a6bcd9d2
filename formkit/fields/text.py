import re

from django.core.exceptions import ValidationError
from django.core.validators import (
    MaxLengthValidator,
    MinLengthValidator,
    RegexValidator,
    URLValidator,
    validate_email,
)
from django.utils.dateparse import parse_date, parse_datetime, parse_time
from django.utils.html import strip_tags
from django.utils.translation import gettext as _

from .base import BaseField

# Tags and attributes removed from rich text before storage.
_SCRIPT_BLOCK_RE = re.compile(
    r'<\s*(script|style|iframe|object|embed)\b[^>]*>.*?<\s*/\s*\1\s*>',
    re.IGNORECASE | re.DOTALL)
_SCRIPT_TAG_RE = re.compile(
    r'<\s*/?\s*(script|style|iframe|object|embed)\b[^>]*>', re.IGNORECASE)
_EVENT_ATTR_RE = re.compile(
    r'\s+on[a-z]+\s*=\s*("[^"]*"|\'[^\']*\'|[^\s>]+)', re.IGNORECASE)
_JS_URL_RE = re.compile(
    r'(href|src)\s*=\s*(["\']?)\s*javascript:[^"\'>\s]*\2', re.IGNORECASE)

_COLOR_RE = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


class TextField(BaseField):
    """Single line text. Base class for the other text-like inputs."""

    def to_python(self, value):
        if isinstance(value, (list, tuple)):
            raise ValidationError(_("Please enter a single value."), code='invalid')
        return self.sanitize(str(value))

    def sanitize(self, value):
        # Single line: drop tags and collapse whitespace.
        return ' '.join(strip_tags(value).split())

    def clean_value(self, value):
        definition = self.definition
        validators = []
        if definition.min_length is not None:
            validators.append(MinLengthValidator(
                definition.min_length,
                message=_("Minimum length is %(limit_value)d characters.")))
        if definition.max_length is not None:
            validators.append(MaxLengthValidator(
                definition.max_length,
                message=_("Maximum length is %(limit_value)d characters.")))
        if definition.pattern:
            validators.append(RegexValidator(
                regex=r'\A(?:%s)\Z' % definition.pattern,
                message=_("Value does not match the required format."),
                code='pattern'))

        for validator in validators:
            validator(value)
        return value


class PasswordField(TextField):
    input_type = 'password'

    def sanitize(self, value):
        # Passwords keep every character.
        return value.strip('\r\n')


class EmailField(TextField):
    input_type = 'email'

    def clean_value(self, value):
        value = super().clean_value(value)
        try:
            validate_email(value)
        except ValidationError:
            raise ValidationError(
                _("Please enter a valid email address."), code='invalid')
        return value


class UrlField(TextField):
    input_type = 'url'

    def clean_value(self, value):
        value = super().clean_value(value)
        try:
            URLValidator()(value)
        except ValidationError:
            raise ValidationError(_("Please enter a valid URL."), code='invalid')
        return value


class TextareaField(TextField):
    input_type = 'textarea'

    def sanitize(self, value):
        # Multi line: drop tags, keep line breaks.
        lines = strip_tags(value).replace('\r\n', '\n').split('\n')
        return '\n'.join(line.rstrip() for line in lines).strip()


class RichTextField(TextField):
    input_type = 'richtext'

    def sanitize(self, value):
        value = _SCRIPT_BLOCK_RE.sub('', value)
        value = _SCRIPT_TAG_RE.sub('', value)
        value = _EVENT_ATTR_RE.sub('', value)
        value = _JS_URL_RE.sub(r'\1="#"', value)
        return value.strip()


class ColorField(TextField):
    input_type = 'color'

    def clean_value(self, value):
        if not _COLOR_RE.match(value):
            raise ValidationError(
                _("Please enter a valid hex color."), code='invalid')
        return value.lower()


class TelField(TextField):
    input_type = 'tel'


class HiddenField(TextField):
    input_type = 'hidden'


# ==========================================
# Dates & Times (stored as ISO strings)
# ==========================================

class _TemporalField(TextField):
    parser = None
    error_message = "Please enter a valid value."

    def clean_value(self, value):
        try:
            parsed = type(self).parser(value)
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(_(self.error_message), code='invalid')
        return parsed.isoformat()


class DateField(_TemporalField):
    input_type = 'date'
    parser = staticmethod(parse_date)
    error_message = "Please enter a valid date."


class TimeField(_TemporalField):
    input_type = 'time'
    parser = staticmethod(parse_time)
    error_message = "Please enter a valid time."


class DateTimeField(_TemporalField):
    input_type = 'datetime-local'
    parser = staticmethod(parse_datetime)
    error_message = "Please enter a valid date and time."
