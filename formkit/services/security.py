import logging

from django.core import signing
from django.utils.crypto import constant_time_compare

from ..conf import formkit_setting

logger = logging.getLogger('formkit.security')

# Headers checked in order when resolving the client IP for logs.
IP_HEADERS = (
    'HTTP_CF_CONNECTING_IP',
    'HTTP_X_FORWARDED_FOR',
    'HTTP_X_REAL_IP',
    'REMOTE_ADDR',
)


# ==========================================
# 1. CAPABILITIES
# ==========================================

def has_capability(actor, capability):
    """
    `actor` is a Django user, or a plain set of "app_label.codename"
    strings (what RequestContext.current_actor_capabilities() returns).
    """
    if actor is None or not capability:
        return False
    if hasattr(actor, 'has_perm'):
        if not getattr(actor, 'is_authenticated', False):
            return False
        return actor.has_perm(capability)
    return capability in actor


def get_client_ip(request):
    if request is None:
        return ''
    for header in IP_HEADERS:
        value = request.META.get(header)
        if value:
            # X-Forwarded-For may carry a chain: client, proxy1, proxy2
            return value.split(',')[0].strip()
    return ''


def log_security_event(event, request=None, user=None, form_id=None, **context):
    """
    Never pass submitted values, ciphertext or plaintext in `context`.
    """
    if user is None and request is not None:
        user = getattr(request, 'user', None)
    user_id = getattr(user, 'pk', None)

    details = {
        'event': event,
        'form_id': form_id,
        'user_id': user_id,
        'ip': get_client_ip(request),
    }
    details.update(context)
    logger.warning(f"[SECURITY] {event}: {details}", extra={'security': details})


# ==========================================
# 2. PER-FORM TOKENS
# ==========================================

class CsrfProvider:
    """
    Per-form token bound to the form id, the user and the session, and
    signed with SECRET_KEY. Sits on top of Django's CsrfViewMiddleware.
    """

    salt_prefix = 'formkit.form'

    def __init__(self, request):
        self.request = request

    def _signer(self, form_id):
        return signing.TimestampSigner(salt=f"{self.salt_prefix}.{form_id}")

    def _binding(self, form_id):
        user = getattr(self.request, 'user', None)
        user_id = getattr(user, 'pk', None) or 0
        session = getattr(self.request, 'session', None)
        session_key = getattr(session, 'session_key', None) or ''
        return f"{form_id}:{user_id}:{session_key}"

    def mint(self, form_id):
        return self._signer(form_id).sign(self._binding(form_id))

    def verify(self, token, form_id):
        if not token or not isinstance(token, str):
            return False
        try:
            value = self._signer(form_id).unsign(
                token, max_age=formkit_setting('CSRF_TOKEN_MAX_AGE'))
        except signing.BadSignature:
            # SignatureExpired is a subclass.
            return False
        return constant_time_compare(value, self._binding(form_id))
