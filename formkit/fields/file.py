import os

from django.core.exceptions import ValidationError
from django.template.defaultfilters import filesizeformat
from django.utils.translation import gettext as _

from ..conf import formkit_setting
from ..services.uploads import guess_content_type, is_dangerous_filename, matches_accept
from .base import BaseField


class FileField(BaseField):
    """
    Checks the upload's name, type and size. Storing the file is the
    engine's job, after the whole form validated.
    """

    input_type = 'file'

    def satisfied_by_stored_value(self):
        # A file saved earlier keeps satisfying "required".
        return not self.is_empty(self.stored_value)

    def is_empty(self, value):
        if isinstance(value, (list, tuple)):
            return all(super(FileField, self).is_empty(v) for v in value)
        return super().is_empty(value)

    def empty_result(self):
        return None

    def to_python(self, value):
        files = list(value) if isinstance(value, (list, tuple)) else [value]
        files = [f for f in files if f is not None]
        if len(files) > 1 and not self.definition.multiple:
            raise ValidationError(_("Only one file may be uploaded."), code='invalid')
        return files

    def clean_value(self, files):
        for upload in files:
            self.check_upload(upload)
        if self.definition.multiple:
            return files
        return files[0]

    def check_upload(self, upload):
        name = getattr(upload, 'name', None)
        if not name:
            raise ValidationError(_("Invalid file upload."), code='invalid')
        filename = os.path.basename(name)

        # Always refused, even when `accept` would allow it.
        if is_dangerous_filename(filename):
            raise ValidationError(
                _("Files of this type are not allowed for security reasons."),
                code='dangerous_file')

        accept = self.definition.accept
        content_type = guess_content_type(filename, getattr(upload, 'content_type', None))
        if accept and not matches_accept(filename, content_type, accept):
            raise ValidationError(_("File type not allowed."), code='file_type')

        max_size = self.definition.max_size or formkit_setting('MAX_UPLOAD_SIZE')
        size = getattr(upload, 'size', None) or 0
        if max_size and size > max_size:
            raise ValidationError(
                _("File size exceeds maximum allowed size of %(size)s.")
                % {'size': filesizeformat(max_size)},
                code='file_size')
