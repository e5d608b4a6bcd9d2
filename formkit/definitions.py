from dataclasses import dataclass, field
from types import MappingProxyType

from .exceptions import FormConfigurationError

# ==========================================
# 1. FIELD TYPES
# ==========================================

FIELD_TYPES = (
    ('text', 'Text Input'),
    ('email', 'Email Input'),
    ('url', 'URL Input'),
    ('password', 'Password Input'),
    ('tel', 'Phone Input'),
    ('number', 'Number Input'),
    ('range', 'Range Slider'),
    ('textarea', 'Text Area'),
    ('richtext', 'Rich Text Editor'),
    ('wysiwyg', 'Rich Text Editor'),
    ('select', 'Dropdown Select'),
    ('radio', 'Radio Buttons'),
    ('checkbox', 'Checkbox'),
    ('switch', 'Toggle Switch'),
    ('color', 'Color Picker'),
    ('date', 'Date Picker'),
    ('time', 'Time Picker'),
    ('datetime', 'Date & Time Picker'),
    ('file', 'File Upload'),
    ('encrypted', 'Encrypted Input'),
    ('hidden', 'Hidden Input'),
)

FIELD_TYPE_NAMES = frozenset(name for name, _label in FIELD_TYPES)

# Absence from a submitted form means "off" for these.
CHECKBOX_FAMILY = frozenset({'checkbox', 'switch'})

# ==========================================
# 2. CONDITIONS
# ==========================================

OPERATORS = frozenset({
    'is_checked',
    'not_checked',
    'equals',
    'not_equals',
    'in',
    'not_in',
    'contains',
    'greater_than',
    'less_than',
})

SET_OPERATORS = frozenset({'in', 'not_in'})


@dataclass(frozen=True)
class Condition:
    field: str
    operator: str
    value: object = None

    def __post_init__(self):
        if not self.field:
            raise FormConfigurationError("A condition needs a field name.")
        if self.operator not in OPERATORS:
            raise FormConfigurationError(
                f"Unknown condition operator: {self.operator!r}")
        if self.operator in SET_OPERATORS:
            if not isinstance(self.value, (list, tuple, set, frozenset)):
                raise FormConfigurationError(
                    f"'{self.operator}' expects a list of values.")
            object.__setattr__(self, 'value', tuple(self.value))

    @classmethod
    def coerce(cls, raw):
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, dict):
            return cls(
                field=raw.get('field', ''),
                operator=raw.get('operator', 'equals'),
                value=raw.get('value'),
            )
        if isinstance(raw, (list, tuple)) and 2 <= len(raw) <= 3:
            return cls(*raw)
        raise FormConfigurationError(f"Malformed condition: {raw!r}")


def when(field_name, operator, value=None):
    """Shorthand used by form declarations: when('enable', 'is_checked')."""
    return Condition(field_name, operator, value)


def normalize_groups(groups):
    """
    Turns user input into an OR-of-ANDs tuple:
        ((Condition, Condition), (Condition,))

    A flat list of conditions is read as a single AND group.
    """
    if groups is None:
        return ()
    if isinstance(groups, (Condition, dict)):
        groups = [[groups]]
    groups = list(groups)
    if groups and all(isinstance(g, (Condition, dict)) for g in groups):
        groups = [groups]

    normalized = []
    for group in groups:
        if isinstance(group, (Condition, dict)):
            group = [group]
        normalized.append(tuple(Condition.coerce(c) for c in group))
    return tuple(normalized)


# ==========================================
# 3. FIELD & FORM DEFINITIONS (immutable)
# ==========================================

@dataclass(frozen=True)
class FieldDefinition:
    name: str
    type: str
    label: str = ''
    default: object = None
    placeholder: str = ''
    description: str = ''
    options: tuple = ()            # ((label, value), ...)
    min: object = None
    max: object = None
    step: object = None
    min_length: int = None
    max_length: int = None
    pattern: str = None
    accept: str = ''
    max_size: int = None
    multiple: bool = False
    rows: int = None
    required: bool = False
    encrypted: bool = False
    visibility_rule: tuple = ()
    visibility_mode: str = 'show'
    required_rule: tuple = ()
    validators: tuple = ()

    @property
    def is_checkbox_family(self):
        return self.type in CHECKBOX_FAMILY

    @property
    def is_multi_valued(self):
        if self.type == 'checkbox':
            return bool(self.options)
        return self.multiple and self.type in ('select', 'file')

    def option_values(self):
        return [value for _label, value in self.options]

    def empty_value(self):
        """Value written when a checkbox-family field comes back unchecked."""
        return [] if self.is_multi_valued else False


@dataclass(frozen=True)
class FormDefinition:
    form_id: str
    fields: MappingProxyType
    persistence: object = None
    success_message: str = ''
    error_message: str = ''
    capability: str = ''
    submit_label: str = 'Save'
    description: str = ''
    hooks: MappingProxyType = field(
        default_factory=lambda: MappingProxyType({}))

    @property
    def csrf_token_name(self):
        return f"{self.form_id}_token"

    @property
    def prefix(self):
        return self.form_id

    @property
    def marker_name(self):
        return self.input_name('form_id')

    @property
    def multipart(self):
        # Derived: any file field forces multipart encoding.
        return any(f.type == 'file' for f in self.fields.values())

    def input_name(self, field_name):
        return f"{self.prefix}-{field_name}"

    def defaults(self):
        return {name: f.default for name, f in self.fields.items()}

    def get_hooks(self, name):
        return self.hooks.get(name, ())
