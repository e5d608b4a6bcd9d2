import json
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_http_methods, require_POST

from .conditions import ConditionEvaluator
from .engine import FormEngine, FormState
from .exceptions import AuthorizationError, DecryptionError
from .registry import get_form_definition, registered_form_ids
from .services.cache import RequestCache
from .services.encryption import EncryptionService
from .services.security import CsrfProvider, log_security_event

logger = logging.getLogger(__name__)


def _read_json(request):
    try:
        payload = json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _verify_form_token(request, definition, token):
    if CsrfProvider(request).verify(token, definition.form_id):
        return True
    log_security_event('invalid_token', request=request, form_id=definition.form_id)
    return False


# ========================================================
# 1. FORM PAGE (GET renders, POST submits)
# ========================================================


@login_required
def form_list_view(request):
    return render(request, 'formkit/form_list.html', {
        'form_ids': registered_form_ids(),
    })


@login_required
@require_http_methods(['GET', 'POST'])
def form_page_view(request, form_id):
    definition = get_form_definition(form_id, request)
    engine = FormEngine(definition, request)
    result = engine.handle()

    if result.state == FormState.SAVED:
        for message in result.messages:
            messages.success(request, message['text'])
        # Post/Redirect/Get so a refresh does not resubmit.
        return redirect('formkit_form_page', form_id=form_id)

    status = 400 if result.state in (FormState.INVALID, FormState.FAILED) else 200
    return render(request, 'formkit/form_page.html', engine.template_context(), status=status)


# ========================================================
# 2. CONDITION PREVIEW (JSON)
# ========================================================


@login_required
@require_POST
def api_evaluate_conditions(request, form_id):
    """
    Live preview for the browser: the same evaluator the server validates
    with, run against the values currently on screen. Nothing is saved.

    Body: {"token": "...", "values": {"field": value, ...}}
    """
    definition = get_form_definition(form_id, request)
    payload = _read_json(request)
    if payload is None:
        return JsonResponse({'status': 'error', 'msg': 'Invalid JSON body.'}, status=400)

    if not _verify_form_token(request, definition, payload.get('token')):
        return JsonResponse({'status': 'error', 'msg': 'Security check failed.'}, status=403)

    raw_values = payload.get('values') or {}
    if not isinstance(raw_values, dict):
        return JsonResponse({'status': 'error', 'msg': 'values must be an object.'}, status=400)

    # Unknown keys are ignored; undeclared fields cannot open branches.
    values = {name: raw_values[name] for name in definition.fields if name in raw_values}
    states = ConditionEvaluator(definition.fields).state_map(values)

    return JsonResponse({'status': 'success', 'fields': states})


# ========================================================
# 3. ENCRYPT / DECRYPT ONE FIELD (JSON)
# ========================================================


def _encrypted_field_or_error(definition, name):
    field_def = definition.fields.get(name)
    if field_def is None or not field_def.encrypted:
        return None, JsonResponse(
            {'status': 'error', 'msg': 'Unknown encrypted field.'}, status=404)
    return field_def, None


@login_required
@require_POST
def api_encrypt_field(request, form_id):
    """
    Body: {"token": "...", "field": "api_key", "value": "plaintext"}
    Returns the ciphertext and its display mask.
    """
    definition = get_form_definition(form_id, request)
    payload = _read_json(request)
    if payload is None:
        return JsonResponse({'status': 'error', 'msg': 'Invalid JSON body.'}, status=400)

    if not _verify_form_token(request, definition, payload.get('token')):
        return JsonResponse({'status': 'error', 'msg': 'Security check failed.'}, status=403)

    _field_def, error = _encrypted_field_or_error(definition, payload.get('field'))
    if error:
        return error

    value = payload.get('value')
    if not isinstance(value, str):
        return JsonResponse({'status': 'error', 'msg': 'value must be a string.'}, status=400)

    service = EncryptionService()
    encrypted = service.encrypt(value)
    return JsonResponse({
        'status': 'success',
        'encrypted': encrypted,
        'display': service.mask(encrypted),
    })


@login_required
@require_POST
def api_decrypt_field(request, form_id):
    """
    Body: {"token": "...", "field": "api_key"}
    Decrypts the stored value of one field for an administrator.
    """
    definition = get_form_definition(form_id, request)
    payload = _read_json(request)
    if payload is None:
        return JsonResponse({'status': 'error', 'msg': 'Invalid JSON body.'}, status=400)

    if not _verify_form_token(request, definition, payload.get('token')):
        return JsonResponse({'status': 'error', 'msg': 'Security check failed.'}, status=403)

    field_def, error = _encrypted_field_or_error(definition, payload.get('field'))
    if error:
        return error

    stored = definition.persistence.load([field_def.name], cache=RequestCache())
    service = EncryptionService()
    try:
        # Capability is checked inside decrypt(), before the value is touched.
        plaintext = service.decrypt(stored.get(field_def.name, ''), request.user)
    except AuthorizationError:
        return JsonResponse({'status': 'error', 'msg': 'Permission denied.'}, status=403)
    except DecryptionError:
        logger.error(f"Stored value of '{form_id}.{field_def.name}' could not be decrypted")
        return JsonResponse({'status': 'error', 'msg': 'Stored value could not be decrypted.'},
                            status=500)

    return JsonResponse({'status': 'success', 'value': plaintext})
