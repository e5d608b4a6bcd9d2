# formkit/
# ├── fields/
# │   ├── base.py       <-- BaseField, ValidationOutcome
# │   ├── text.py       <-- text, tel, email, url, textarea, richtext, color, dates
# │   ├── numeric.py    <-- number, range
# │   ├── choice.py     <-- select, radio, checkbox, switch
# │   ├── file.py       <-- file uploads
# │   └── encrypted.py  <-- encrypted inputs

from ..exceptions import FormConfigurationError
from .base import BaseField, ValidationOutcome
from .choice import CheckboxField, ChoiceField, RadioField, SwitchField
from .encrypted import EncryptedField
from .file import FileField
from .numeric import NumberField, RangeField
from .text import (
    ColorField,
    DateField,
    DateTimeField,
    EmailField,
    HiddenField,
    PasswordField,
    RichTextField,
    TelField,
    TextareaField,
    TextField,
    TimeField,
    UrlField,
)

# Field type -> implementation. Every type in definitions.FIELD_TYPES
# must appear here.
FIELD_CLASSES = {
    'text': TextField,
    'tel': TelField,
    'email': EmailField,
    'url': UrlField,
    'password': PasswordField,
    'hidden': HiddenField,
    'textarea': TextareaField,
    'richtext': RichTextField,
    'wysiwyg': RichTextField,
    'color': ColorField,
    'date': DateField,
    'time': TimeField,
    'datetime': DateTimeField,
    'number': NumberField,
    'range': RangeField,
    'select': ChoiceField,
    'radio': RadioField,
    'checkbox': CheckboxField,
    'switch': SwitchField,
    'file': FileField,
    'encrypted': EncryptedField,
}


def create_field(definition, submitted_value, stored_value=None, required=None):
    """
    Builds the typed field object for one definition and its current value.
    `required` overrides the declared flag (conditional requirements).
    """
    try:
        field_class = FIELD_CLASSES[definition.type]
    except KeyError:
        raise FormConfigurationError(f"No field class for type {definition.type!r}")
    return field_class(definition, submitted_value,
                       stored_value=stored_value, required=required)
