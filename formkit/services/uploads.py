import logging
import mimetypes
import os
import re
import uuid

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

from ..conf import formkit_setting
from ..exceptions import UploadError
from .security import log_security_event

logger = logging.getLogger(__name__)

SNIFF_BYTES = 1024

# Script content that has no business inside an uploaded document.
_MALICIOUS_CONTENT_RE = re.compile(
    rb'<\?php|<\?=|<script[\s>]|<%[@=]|\A#!', re.IGNORECASE)


# ==========================================
# 1. PURE CHECKS (used during validation)
# ==========================================

def file_extensions(filename):
    """'archive.tar.gz' -> ['tar', 'gz']"""
    parts = os.path.basename(filename).lower().strip().rstrip('.').split('.')
    return [p.strip() for p in parts[1:] if p.strip()]


def is_dangerous_filename(filename):
    """
    True when any extension segment is executable or a server-side script,
    so 'shell.php.jpg' is refused too. `accept` cannot override this.
    """
    dangerous = {ext.lower() for ext in formkit_setting('DANGEROUS_EXTENSIONS')}
    name = os.path.basename(filename).lower().strip()
    if name.startswith('.') and name.lstrip('.') in dangerous:
        return True
    return any(ext in dangerous for ext in file_extensions(name))


def guess_content_type(filename, declared=None):
    """Type from the extension first; the client's claim is only a fallback."""
    guessed, _encoding = mimetypes.guess_type(filename)
    return guessed or declared or 'application/octet-stream'


def matches_accept(filename, content_type, accept):
    """
    HTML `accept` semantics: comma separated list of '.ext', 'type/*',
    'type/subtype', or '*' / '*/*' for anything.
    """
    if not accept:
        return True

    extensions = file_extensions(filename)
    last_ext = extensions[-1] if extensions else ''
    content_type = (content_type or '').lower()
    major = content_type.split('/')[0]

    for token in accept.split(','):
        token = token.strip().lower()
        if not token:
            continue
        if token in ('*', '*/*'):
            return True
        if token.startswith('.'):
            if last_ext == token[1:]:
                return True
        elif token.endswith('/*'):
            if major == token[:-2]:
                return True
        elif token == content_type:
            return True
    return False


def contains_malicious_content(upload):
    try:
        upload.seek(0)
        head = upload.read(SNIFF_BYTES)
        upload.seek(0)
    except (OSError, ValueError):
        # Unreadable upload: refuse rather than guess.
        return True
    if isinstance(head, str):
        head = head.encode('utf-8', 'ignore')
    return bool(_MALICIOUS_CONTENT_RE.search(head or b''))


# ==========================================
# 2. STORAGE (after the whole form validated)
# ==========================================

class FileStorageService:

    def __init__(self, storage=None, upload_dir=None, request=None, form_id=None):
        self.storage = storage or default_storage
        self.upload_dir = upload_dir or formkit_setting('UPLOAD_DIR')
        self.request = request
        self.form_id = form_id

    def accept_upload(self, upload, declared_name=None):
        """
        Moves one validated upload into storage and returns its storage name.
        """
        name = os.path.basename(declared_name or getattr(upload, 'name', '') or '')
        if not name:
            raise UploadError("Upload has no file name.")

        if is_dangerous_filename(name):
            log_security_event('dangerous_upload', request=self.request,
                               form_id=self.form_id, filename=get_valid_filename(name))
            raise UploadError("Files of this type are not allowed.")

        if contains_malicious_content(upload):
            log_security_event('malicious_upload', request=self.request,
                               form_id=self.form_id, filename=get_valid_filename(name))
            raise UploadError("File contains potentially malicious content.")

        safe_name = get_valid_filename(name)
        target = os.path.join(self.upload_dir, f"{uuid.uuid4().hex[:12]}_{safe_name}")
        try:
            stored = self.storage.save(target, upload)
        except OSError as e:
            logger.error(f"Saving upload '{safe_name}' failed: {e}")
            raise UploadError("The file could not be saved.") from e

        logger.info(f"Stored upload {stored}")
        return stored

    def accept_many(self, uploads):
        """All or nothing: files stored before a failure are removed again."""
        stored = []
        for upload in uploads:
            try:
                stored.append(self.accept_upload(upload))
            except UploadError:
                self.discard(stored)
                raise
        return stored

    def discard(self, references):
        for reference in references:
            try:
                self.storage.delete(reference)
            except OSError as e:
                logger.warning(f"Could not remove upload {reference}: {e}")

    def url(self, reference):
        return self.storage.url(reference) if reference else ''
