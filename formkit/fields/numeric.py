from decimal import Decimal, InvalidOperation, localcontext

from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _

from .base import BaseField


def _decimal(value):
    return Decimal(str(value).strip())


# Magnitude bound for submitted numbers, and for the digits an exact
# step check may use.
MAX_DIGITS = 1000


def on_step(value, base, step):
    """
    Exact "(value - base) is a multiple of step". The working precision
    grows with the operands, so large inputs do not overflow the quotient.
    Returns False when the check would need more than MAX_DIGITS.
    """
    numbers = (value, base, step)
    digits = (max(n.adjusted() for n in numbers)
              - min(n.as_tuple().exponent for n in numbers) + 2)
    if digits > MAX_DIGITS:
        return False
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, digits)
        try:
            return (value - base) % step == 0
        except InvalidOperation:
            return False


class NumberField(BaseField):
    input_type = 'number'

    def to_python(self, value):
        if isinstance(value, bool):
            raise ValidationError(_("Please enter a valid number."), code='invalid')
        try:
            number = _decimal(value)
        except (InvalidOperation, ValueError):
            raise ValidationError(_("Please enter a valid number."), code='invalid')
        if not number.is_finite() or abs(number.adjusted()) > MAX_DIGITS:
            raise ValidationError(_("Please enter a valid number."), code='invalid')
        return number

    def clean_value(self, value):
        definition = self.definition

        if definition.min is not None and value < _decimal(definition.min):
            raise ValidationError(
                _("Value must be at least %(min)s.") % {'min': definition.min},
                code='min_value')

        if definition.max is not None and value > _decimal(definition.max):
            raise ValidationError(
                _("Value must be no more than %(max)s.") % {'max': definition.max},
                code='max_value')

        if definition.step:
            base = _decimal(definition.min) if definition.min is not None else Decimal(0)
            if not on_step(value, base, _decimal(definition.step)):
                raise ValidationError(
                    _("Value must be in steps of %(step)s.") % {'step': definition.step},
                    code='step')

        # JSON friendly: ints stay ints.
        if value == value.to_integral_value():
            return int(value)
        return float(value)

    def empty_result(self):
        return None


class RangeField(NumberField):
    input_type = 'range'
