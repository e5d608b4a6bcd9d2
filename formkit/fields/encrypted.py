from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _

from ..services.encryption import is_encrypted_value
from .text import PasswordField


class EncryptedField(PasswordField):
    """
    Validated like text. The plaintext is ciphered by the engine right
    before the persistence call. A ciphered token is accepted only when it
    is the value already stored for this field.
    """

    input_type = 'password'

    def satisfied_by_stored_value(self):
        return not self.is_empty(self.stored_value)

    def clean(self):
        value = self.raw_value
        if isinstance(value, str) and is_encrypted_value(value):
            if value != self.stored_value:
                raise ValidationError(
                    _("Enter the secret itself, not an encrypted value."),
                    code='invalid')
            return value
        return super().clean()
