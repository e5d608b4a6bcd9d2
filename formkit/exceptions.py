from django.core.exceptions import ImproperlyConfigured, PermissionDenied


class FormkitError(Exception):
    """Base class for engine failures that are not field validation."""


class DuplicateFieldError(FormkitError, ValueError):
    def __init__(self, form_id, name):
        self.form_id = form_id
        self.name = name
        super().__init__(
            f"Field '{name}' is already declared on form '{form_id}'.")


class FormConfigurationError(ImproperlyConfigured):
    """Unknown field type, unknown operator or a malformed condition."""


class SecurityError(FormkitError):
    """
    Token or capability failure. The message is always generic so the
    caller learns nothing about the form's fields.
    """


class PersistError(FormkitError):
    pass


class UploadError(FormkitError):
    pass


class DecryptionError(FormkitError):
    pass


class AuthorizationError(PermissionDenied):
    """Raised when a caller without the admin capability asks for plaintext."""
