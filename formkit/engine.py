"""
Drives one form through a request:

    Built -> Rendered                              (GET, or another form posted)
    Built -> Submitted -> Invalid                  (bad token, no capability,
                                                    or field errors)
    Built -> Submitted -> Valid -> Saved | Failed  (persistence outcome)

Every submission ends in exactly one terminal state.
"""
import logging
from dataclasses import dataclass, field

from .conditions import ConditionEvaluator
from .conf import formkit_setting
from .exceptions import PersistError, SecurityError, UploadError
from .fields import FIELD_CLASSES
from .services.cache import RequestCache
from .services.encryption import EncryptionService, is_encrypted_value
from .services.request_context import RequestContext
from .services.security import CsrfProvider, has_capability, log_security_event
from .services.uploads import FileStorageService
from .validator import validate_form

logger = logging.getLogger(__name__)


class FormState:
    BUILT = 'built'
    RENDERED = 'rendered'
    SUBMITTED = 'submitted'
    INVALID = 'invalid'
    VALID = 'valid'
    SAVED = 'saved'
    FAILED = 'failed'

    TERMINAL = frozenset({INVALID, SAVED, FAILED})


@dataclass
class SubmissionResult:
    state: str = FormState.BUILT
    submitted: bool = False
    valid: bool = False
    errors: dict = field(default_factory=dict)
    error_codes: dict = field(default_factory=dict)
    data: dict = field(default_factory=dict)
    messages: list = field(default_factory=list)

    @property
    def is_terminal(self):
        return self.state in FormState.TERMINAL

    def add_message(self, level, text):
        self.messages.append({'level': level, 'text': text})

    def summary(self):
        return {
            'submitted': self.submitted,
            'valid': self.valid,
            'errors': dict(self.errors),
            'messages': list(self.messages),
        }


@dataclass(frozen=True)
class FieldRender:
    """One row handed to the template."""
    name: str
    input_name: str
    definition: object
    input_type: str
    visible: bool
    required: bool
    value: object = None
    error: str = ''
    display: str = ''


class FormEngine:
    """
    Binds an immutable FormDefinition to one request.

        engine = FormEngine(definition, request)
        result = engine.handle()
        rows = engine.render()

    Collaborators default to the Django backed services and can be swapped
    for tests.
    """

    def __init__(self, definition, request, csrf=None, encryption=None,
                 uploads=None, cache=None):
        self.definition = definition
        self.request = request
        self.context = RequestContext(request, definition)
        self.cache = cache if cache is not None else RequestCache()
        self.csrf = csrf or CsrfProvider(request)
        self.encryption = encryption or EncryptionService()
        self.uploads = uploads or FileStorageService(
            request=request, form_id=definition.form_id)
        self.result = SubmissionResult()
        self._submitted_values = {}
        self._stored = None

    # =========================================================
    # 1. SUBMISSION LIFECYCLE
    # =========================================================

    def handle(self):
        if self.result.state != FormState.BUILT:
            return self.result

        if not self.context.is_submission():
            self.result.state = FormState.RENDERED
            return self.result

        self.result.submitted = True
        self.result.state = FormState.SUBMITTED

        # 1. Cheapest checks first. Nothing about the fields is touched yet.
        try:
            self._check_security()
        except SecurityError:
            self.result.state = FormState.INVALID
            self.result.add_message('error', formkit_setting('SECURITY_MESSAGE'))
            return self.result

        # 2. Validate
        values = self.context.submitted_values()
        values = self._run_filter('before_validate', values)
        self._submitted_values = values

        report = validate_form(values, self.definition, self.load_stored())
        self._run_hooks('after_validate', report)

        if not report.valid:
            self.result.state = FormState.INVALID
            self.result.errors = dict(report.errors)
            self.result.error_codes = dict(report.error_codes)
            self.result.add_message('error', self.definition.error_message)
            self._run_hooks('on_error', self.result)
            logger.info(
                f"Form '{self.definition.form_id}' rejected: "
                f"{sorted(report.errors)} invalid")
            return self.result

        self.result.valid = True
        self.result.state = FormState.VALID

        # 3. Persist
        data = self._run_filter('before_save', dict(report.data))
        stored_files = []
        try:
            data = self._store_uploads(data, stored_files)
            data = self._seal(data)
            self.definition.persistence.commit(data, cache=self.cache)
        except (PersistError, UploadError) as e:
            self.uploads.discard(stored_files)
            logger.error(f"Form '{self.definition.form_id}' could not be saved: {e}")
            self.result.state = FormState.FAILED
            self.result.add_message('error', self.definition.error_message)
            self._run_hooks('on_error', self.result)
            return self.result

        self._stored = None
        self.result.data = data
        self._run_hooks('after_save', data)

        self.result.state = FormState.SAVED
        self.result.add_message('success', self.definition.success_message)
        self._run_hooks('on_success', data)
        logger.info(f"Form '{self.definition.form_id}' saved ({len(data)} values)")
        return self.result

    def _check_security(self):
        form_id = self.definition.form_id

        token = self.context.raw(self.definition.csrf_token_name)
        if not self.csrf.verify(token, form_id):
            log_security_event('invalid_token', request=self.request, form_id=form_id)
            raise SecurityError("Invalid form token.")

        capabilities = self.context.current_actor_capabilities()
        if not has_capability(capabilities, self.definition.capability):
            log_security_event('capability_denied', request=self.request,
                               form_id=form_id, capability=self.definition.capability)
            raise SecurityError("Missing capability.")

    def _store_uploads(self, data, stored_files):
        """Swaps validated UploadedFile objects for storage references."""
        for name, definition in self.definition.fields.items():
            if definition.type != 'file' or name not in data:
                continue
            value = data[name]
            if isinstance(value, list):
                references = self.uploads.accept_many(value)
                stored_files.extend(references)
                data[name] = references
            else:
                reference = self.uploads.accept_upload(value)
                stored_files.append(reference)
                data[name] = reference
        return data

    def _seal(self, data):
        """
        Encrypts flagged fields right before the write. Only the token
        already stored for a field is kept as is.
        """
        stored = self.load_stored()
        for name, definition in self.definition.fields.items():
            if not definition.encrypted or name not in data:
                continue
            value = data[name]
            if value in (None, ''):
                continue
            if is_encrypted_value(value) and value == stored.get(name):
                continue
            data[name] = self.encryption.encrypt(value)
        return data

    # =========================================================
    # 2. HOOKS
    # =========================================================

    def _run_hooks(self, name, payload):
        for callback in self.definition.get_hooks(name):
            callback(payload, self.definition)

    def _run_filter(self, name, payload):
        """before_* hooks may hand back a replacement dict."""
        for callback in self.definition.get_hooks(name):
            returned = callback(payload, self.definition)
            if returned is not None:
                payload = returned
        return payload

    # =========================================================
    # 3. RENDERING
    # =========================================================

    def load_stored(self):
        if self._stored is None:
            self._stored = self.definition.persistence.load(
                list(self.definition.fields), cache=self.cache)
        return self._stored

    def current_values(self):
        """
        Defaults, overlaid with persisted values, overlaid with what the
        user just posted when the post did not save.
        """
        values = self.definition.defaults()
        values.update(self.load_stored())

        if self.result.submitted and self.result.state != FormState.SAVED:
            for name, value in self._submitted_values.items():
                definition = self.definition.fields[name]
                if definition.type == 'file' or definition.encrypted:
                    continue
                values[name] = value
        return values

    def render(self):
        values = self.current_values()
        states = ConditionEvaluator(self.definition.fields).state_map(values)

        rows = []
        for name, definition in self.definition.fields.items():
            value = values.get(name)
            display = ''
            if definition.encrypted:
                # Never echo a secret or its ciphertext back into the page.
                display = self.encryption.mask(value)
                value = ''
            elif definition.type == 'file':
                display = self._file_display(value)

            rows.append(FieldRender(
                name=name,
                input_name=self.definition.input_name(name),
                definition=definition,
                input_type=FIELD_CLASSES[definition.type].input_type,
                visible=states[name]['visible'],
                required=states[name]['required'],
                value=value,
                error=self.result.errors.get(name, ''),
                display=display,
            ))
        return rows

    def _file_display(self, value):
        if isinstance(value, list):
            return ', '.join(self.uploads.url(v) for v in value if isinstance(v, str))
        if isinstance(value, str):
            return self.uploads.url(value)
        return ''

    def template_context(self):
        return {
            'form': self.definition,
            'form_id': self.definition.form_id,
            'rows': self.render(),
            'result': self.result,
            'summary': self.result.summary(),
            'marker_name': self.definition.marker_name,
            'token_name': self.definition.csrf_token_name,
            'token': self.csrf.mint(self.definition.form_id),
            'multipart': self.definition.multipart,
        }
