import logging
from types import MappingProxyType

from .conf import formkit_setting
from .definitions import (
    FIELD_TYPE_NAMES,
    FieldDefinition,
    FormDefinition,
    normalize_groups,
)
from .exceptions import DuplicateFieldError, FormConfigurationError
from .services.persistence import (
    CallbackStrategy,
    EntityMetaStrategy,
    OptionsStrategy,
)

logger = logging.getLogger(__name__)

HOOK_NAMES = (
    'before_validate',
    'after_validate',
    'before_save',
    'after_save',
    'on_success',
    'on_error',
)


class FieldHandle:
    """
    Chained configuration for one declared field.

    Every call writes into the field's own config dict inside the builder,
    so two handles never share state. Nothing is visible to the engine
    until FormBuilder.build() takes a snapshot.
    """

    def __init__(self, builder, name):
        self._builder = builder
        self._name = name

    @property
    def name(self):
        return self._name

    def _set(self, key, value):
        self._builder._configs[self._name][key] = value
        return self

    # --- Basic ---

    def label(self, text):
        return self._set('label', text)

    def required(self, flag=True):
        return self._set('required', bool(flag))

    def default(self, value):
        return self._set('default', value)

    def placeholder(self, text):
        return self._set('placeholder', text)

    def description(self, text):
        return self._set('description', text)

    def rows(self, count):
        return self._set('rows', int(count))

    # --- Choices ---

    def options(self, choices):
        """
        Accepts a mapping of label -> value, or a plain list of values
        (each value is its own label). Order is kept.
        """
        if isinstance(choices, dict):
            pairs = tuple((str(label), value) for label, value in choices.items())
        else:
            pairs = tuple((str(value), value) for value in choices)
        return self._set('options', pairs)

    def multiple(self, flag=True):
        return self._set('multiple', bool(flag))

    # --- Numeric ---

    def min(self, value):
        return self._set('min', value)

    def max(self, value):
        return self._set('max', value)

    def step(self, value):
        return self._set('step', value)

    def range(self, low, high):
        self.min(low)
        return self.max(high)

    # --- Text rules ---

    def min_length(self, length):
        return self._set('min_length', int(length))

    def max_length(self, length):
        return self._set('max_length', int(length))

    def pattern(self, regex):
        return self._set('pattern', regex)

    def validate_with(self, func):
        """
        Custom rule: func(value, definition) returns True, or an error message.
        """
        current = self._builder._configs[self._name].get('validators', ())
        return self._set('validators', tuple(current) + (func,))

    # --- Files ---

    def accept(self, pattern):
        return self._set('accept', pattern)

    def max_size(self, size_bytes):
        return self._set('max_size', int(size_bytes))

    def multiple_files(self):
        return self.multiple(True)

    # --- Conditional logic ---

    def show_when(self, groups):
        self._set('visibility_mode', 'show')
        return self._set('visibility_rule', normalize_groups(groups))

    def hide_when(self, groups):
        self._set('visibility_mode', 'hide')
        return self._set('visibility_rule', normalize_groups(groups))

    def required_when(self, groups):
        return self._set('required_rule', normalize_groups(groups))

    # --- Security ---

    def encrypted(self, flag=True):
        return self._set('encrypted', bool(flag))

    # --- Navigation ---

    def add(self, name, field_type, label=''):
        return self._builder.add(name, field_type, label)

    def end(self):
        return self._builder


class FormBuilder:
    """
    Fluent declaration of one form:

        builder = FormBuilder('general')
        builder.save_to_options(prefix='general_')
        builder.add('enable', 'checkbox', 'Enable')
        builder.add('name', 'text', 'Name').required().show_when(
            [[{'field': 'enable', 'operator': 'is_checked'}]])
        definition = builder.build()
    """

    def __init__(self, form_id):
        if not form_id:
            raise FormConfigurationError("A form needs an id.")
        self.form_id = form_id
        self._configs = {}
        self._persistence = None
        self._success_message = None
        self._error_message = None
        self._capability = None
        self._submit_label = 'Save'
        self._description = ''
        self._hooks = {name: [] for name in HOOK_NAMES}

    # ==========================================
    # FIELDS
    # ==========================================

    def add(self, name, field_type, label=''):
        if name in self._configs:
            raise DuplicateFieldError(self.form_id, name)
        if field_type not in FIELD_TYPE_NAMES:
            raise FormConfigurationError(f"Unknown field type: {field_type!r}")

        self._configs[name] = {
            'type': field_type,
            'label': label or name.replace('_', ' ').capitalize(),
            # 'encrypted' fields are always stored ciphered.
            'encrypted': field_type == 'encrypted',
        }
        return FieldHandle(self, name)

    declare = add

    def field(self, name):
        if name not in self._configs:
            raise KeyError(name)
        return FieldHandle(self, name)

    # ==========================================
    # PERSISTENCE
    # ==========================================

    def save_to_options(self, prefix='', suffix=''):
        return self.save_with(OptionsStrategy(prefix=prefix, suffix=suffix))

    def save_to_entity_meta(self, entity_id):
        return self.save_with(EntityMetaStrategy(entity_id))

    def save_to_custom(self, callback, loader=None):
        return self.save_with(CallbackStrategy(callback, loader=loader))

    def save_with(self, strategy):
        self._persistence = strategy
        return self

    # ==========================================
    # MESSAGES & OPTIONS
    # ==========================================

    def success(self, message):
        self._success_message = message
        return self

    def error(self, message):
        self._error_message = message
        return self

    def capability(self, permission):
        self._capability = permission
        return self

    def submit(self, label='Save'):
        self._submit_label = label
        return self

    def description(self, text):
        self._description = text
        return self

    # ==========================================
    # HOOKS
    # ==========================================

    def on(self, hook, callback):
        if hook not in self._hooks:
            raise FormConfigurationError(f"Unknown hook: {hook!r}")
        self._hooks[hook].append(callback)
        return self

    def before_validate(self, callback):
        return self.on('before_validate', callback)

    def after_validate(self, callback):
        return self.on('after_validate', callback)

    def before_save(self, callback):
        return self.on('before_save', callback)

    def after_save(self, callback):
        return self.on('after_save', callback)

    def on_success(self, callback):
        return self.on('on_success', callback)

    def on_error(self, callback):
        return self.on('on_error', callback)

    # ==========================================
    # FINALIZE
    # ==========================================

    def build(self):
        """
        Returns an immutable FormDefinition. Later changes to the builder
        do not reach definitions that were already built.
        """
        fields = {}
        for name, config in self._configs.items():
            fields[name] = FieldDefinition(name=name, **dict(config))

        self._warn_unknown_references(fields)

        if self._persistence is None:
            persistence = OptionsStrategy(prefix=f"{self.form_id}_")
        else:
            persistence = self._persistence

        return FormDefinition(
            form_id=self.form_id,
            fields=MappingProxyType(fields),
            persistence=persistence,
            success_message=(self._success_message
                             or formkit_setting('SUCCESS_MESSAGE')),
            error_message=(self._error_message
                           or formkit_setting('ERROR_MESSAGE')),
            capability=self._capability or formkit_setting('ADMIN_CAPABILITY'),
            submit_label=self._submit_label,
            description=self._description,
            hooks=MappingProxyType(
                {name: tuple(cbs) for name, cbs in self._hooks.items()}),
        )

    def _warn_unknown_references(self, fields):
        # Not an error: unknown references evaluate fail-closed at runtime.
        for definition in fields.values():
            for group in definition.visibility_rule + definition.required_rule:
                for condition in group:
                    if condition.field not in fields:
                        logger.warning(
                            f"Form '{self.form_id}': field '{definition.name}' "
                            f"has a condition on undeclared field '{condition.field}'")
