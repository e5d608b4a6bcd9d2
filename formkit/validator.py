from dataclasses import dataclass, field

from .conditions import ConditionEvaluator
from .fields import create_field


@dataclass
class ValidationReport:
    valid: bool
    errors: dict = field(default_factory=dict)
    error_codes: dict = field(default_factory=dict)
    data: dict = field(default_factory=dict)
    visible: dict = field(default_factory=dict)


def validate_form(submitted_values, definition, stored_values=None):
    """
    One pass over the form in declaration order.

    - Hidden fields are skipped entirely: never validated, never in `data`.
    - Every visible field is validated; errors are collected, not fail-fast.
    - `data` holds sanitized values for visible fields that were submitted,
      plus checkbox-family fields, whose absence means "unchecked".
      Other missing fields are left out so storage keeps what it had.

    No I/O and no mutation of the inputs, so callers may run it as a preview.
    """
    submitted_values = dict(submitted_values or {})
    stored_values = stored_values or {}

    evaluator = ConditionEvaluator(definition.fields)
    states = evaluator.state_map(submitted_values)

    report = ValidationReport(valid=True)

    for name, field_def in definition.fields.items():
        report.visible[name] = states[name]['visible']
        if not states[name]['visible']:
            continue

        present = name in submitted_values
        instance = create_field(
            field_def,
            submitted_values.get(name),
            stored_value=stored_values.get(name),
            required=states[name]['required'],
        )
        outcome = instance.validate()

        if not outcome.valid:
            report.errors[name] = outcome.message
            report.error_codes[name] = outcome.code
            continue

        if present or field_def.is_checkbox_family:
            value = instance.sanitized_value()
            # Blank file / secret inputs mean "keep the stored one".
            if (field_def.type == 'file' or field_def.encrypted) and value in (None, ''):
                continue
            report.data[name] = value

    report.valid = not report.errors
    return report
