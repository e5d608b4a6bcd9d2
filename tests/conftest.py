import base64

import pytest

from formkit.builder import FormBuilder
from formkit.definitions import when
from formkit.services.security import CsrfProvider

# Fixed 32 byte key so encryption tests never touch the option store.
TEST_KEY = base64.b64encode(b'k' * 32).decode('ascii')


@pytest.fixture(autouse=True)
def formkit_settings(settings, tmp_path):
    settings.FORMKIT = {
        'ENCRYPTION_KEY': TEST_KEY,
        'UPLOAD_DIR': 'uploads/',
    }
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    return settings


@pytest.fixture
def scenario_form():
    """enable (checkbox) gates name (required text)."""
    form = FormBuilder('scenario')
    form.add('enable', 'checkbox', 'Enable')
    form.add('name', 'text', 'Name').required().show_when(
        [[when('enable', 'is_checked')]])
    return form.build()


@pytest.fixture
def mint_token(rf):
    def _mint(form_id, user):
        probe = rf.get('/')
        probe.user = user
        return CsrfProvider(probe).mint(form_id)
    return _mint


@pytest.fixture
def make_post(rf, admin_user, mint_token):
    """
    Builds the POST a browser would send for `definition`: prefixed inputs,
    the hidden marker and the per-form token. Like a browser, False and None
    values are left out and True is sent as "1".
    """
    def _make(definition, values=None, files=None, user=None, token=None):
        user = user or admin_user
        data = {definition.marker_name: definition.form_id}
        for name, value in (values or {}).items():
            if value is None or value is False:
                continue
            if value is True:
                value = '1'
            data[definition.input_name(name)] = value
        for name, upload in (files or {}).items():
            data[definition.input_name(name)] = upload

        if token is None:
            token = mint_token(definition.form_id, user)
        data[definition.csrf_token_name] = token

        request = rf.post('/admin_panel/forms/', data)
        request.user = user
        return request
    return _make
