"""
Conditional visibility for form fields.

A field's rule is an OR of AND groups:

    [[A, B], [C]]   ->  (A and B) or C

Evaluation reads the current value of each referenced field: the submitted
value when one is present, else its declared default. This holds even when
the referenced field is itself hidden.

With FORMKIT['HIDDEN_REFERENCES_USE_DEFAULT'] a hidden referenced field
contributes only its default, so a value forged for an input the client
never rendered cannot open a branch. Dependency cycles then resolve
hidden. A reference to an undeclared field never raises: the is_checked
family evaluates False and the comparison family sees an empty value.
"""
from decimal import Decimal, InvalidOperation

from .conf import formkit_setting

_MISSING = object()

FALSY_STRINGS = frozenset({'', '0', 'false', 'off', 'no', 'none', 'null'})


# ==========================================
# 1. VALUE HELPERS
# ==========================================

def coerce_bool(value):
    if value is None or value is _MISSING:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() not in FALSY_STRINGS
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return bool(value)


def normalize(value):
    """String form used by equals / in comparisons."""
    if value is None or value is _MISSING:
        return ''
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal):
        return format(value.normalize(), 'f')
    return str(value)


def _as_list(value):
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _as_number(value):
    try:
        return Decimal(normalize(value).strip())
    except (InvalidOperation, ValueError):
        return None


def check_condition(condition, actual):
    """
    Applies one operator to the effective value of the referenced field.
    `actual` is _MISSING when the referenced field is not declared.
    """
    op = condition.operator

    if op == 'is_checked':
        return actual is not _MISSING and coerce_bool(actual)
    if op == 'not_checked':
        return actual is not _MISSING and not coerce_bool(actual)

    if op == 'equals':
        return normalize(actual) == normalize(condition.value)
    if op == 'not_equals':
        return normalize(actual) != normalize(condition.value)

    if op in ('in', 'not_in'):
        allowed = {normalize(v) for v in condition.value}
        found = any(normalize(v) in allowed for v in _as_list(actual))
        return found if op == 'in' else not found

    if op == 'contains':
        if isinstance(actual, (list, tuple, set, frozenset)):
            return normalize(condition.value) in {normalize(v) for v in actual}
        return normalize(condition.value) in normalize(actual)

    if op in ('greater_than', 'less_than'):
        left = _as_number(actual)
        right = _as_number(condition.value)
        if left is None or right is None:
            return False
        return left > right if op == 'greater_than' else left < right

    return False


# ==========================================
# 2. EVALUATOR
# ==========================================

class ConditionEvaluator:
    """
    Stateless over requests: bind it to a form's field definitions and ask
    about any set of current values.
    """

    def __init__(self, fields, hidden_use_default=None):
        self.fields = fields
        if hidden_use_default is None:
            hidden_use_default = formkit_setting('HIDDEN_REFERENCES_USE_DEFAULT')
        self.hidden_use_default = bool(hidden_use_default)

    def _run(self, current_values):
        return _Pass(self.fields, current_values, self.hidden_use_default)

    def is_visible(self, field_name, current_values):
        return self._run(current_values).is_visible(field_name)

    def is_required(self, field_name, current_values):
        return self._run(current_values).is_required(field_name)

    def visibility_map(self, current_values):
        run = self._run(current_values)
        return {name: run.is_visible(name) for name in self.fields}

    def state_map(self, current_values):
        """{field: {'visible': bool, 'required': bool}} for client previews."""
        run = self._run(current_values)
        return {
            name: {
                'visible': run.is_visible(name),
                'required': run.is_visible(name) and run.is_required(name),
            }
            for name in self.fields
        }


class _Pass:
    """One evaluation over one set of values, memoised."""

    def __init__(self, fields, values, hidden_use_default=False):
        self.fields = fields
        self.values = values or {}
        self.hidden_use_default = hidden_use_default
        self._visible = {}
        self._resolving = set()

    def is_visible(self, name):
        if name in self._visible:
            return self._visible[name]

        definition = self.fields.get(name)
        if definition is None:
            return False
        if not definition.visibility_rule:
            self._visible[name] = True
            return True

        # Fail closed on dependency cycles.
        if name in self._resolving:
            return False

        self._resolving.add(name)
        try:
            matched = self.matches(definition.visibility_rule)
        finally:
            self._resolving.discard(name)

        visible = matched if definition.visibility_mode == 'show' else not matched
        self._visible[name] = visible
        return visible

    def is_required(self, name):
        definition = self.fields.get(name)
        if definition is None:
            return False
        if definition.required_rule:
            return self.matches(definition.required_rule)
        return definition.required

    def effective_value(self, name):
        definition = self.fields.get(name)
        if definition is None:
            return _MISSING
        if self.hidden_use_default and not self.is_visible(name):
            return definition.default
        if name in self.values:
            return self.values[name]
        return definition.default

    def matches(self, groups):
        # Empty rule: nothing to satisfy.
        if not groups:
            return True
        for group in groups:
            if all(check_condition(c, self.effective_value(c.field)) for c in group):
                return True
        return False
