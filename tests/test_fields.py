import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from formkit.builder import FormBuilder
from formkit.fields import create_field
from formkit.fields.choice import CheckboxField, SwitchField
from formkit.fields.numeric import NumberField


def _field(field_type, configure=None):
    form = FormBuilder('fields')
    handle = form.add('f', field_type, 'Field')
    if configure:
        configure(handle)
    return form.build().fields['f']


def _outcome(definition, value, **kwargs):
    return create_field(definition, value, **kwargs).validate()


# ==========================================
# Text family
# ==========================================

def test_required_text():
    definition = _field('text', lambda f: f.required())
    outcome = _outcome(definition, '   ')
    assert not outcome.valid
    assert outcome.code == 'required'
    assert outcome.message == 'Field is required.'


def test_markup_only_text_does_not_satisfy_required():
    definition = _field('text', lambda f: f.required())
    assert _outcome(definition, '<b></b>').code == 'required'
    assert _outcome(definition, '<p> </p>').code == 'required'

    field = create_field(_field('text'), '<i></i>')
    assert field.validate().valid
    assert field.sanitized_value() == ''


def test_text_is_stripped_of_tags():
    definition = _field('text')
    field = create_field(definition, '  <b>Hello</b>   world ')
    assert field.validate().valid
    assert field.sanitized_value() == 'Hello world'


@pytest.mark.parametrize('value, code', [
    ('ab', 'min_length'),
    ('abcdefg', 'max_length'),
    ('abc1', 'pattern'),
])
def test_text_length_and_pattern(value, code):
    definition = _field('text', lambda f: f.min_length(3).max_length(5).pattern(r'[a-z]+'))
    outcome = _outcome(definition, value)
    assert not outcome.valid
    assert outcome.code == code


def test_email_and_url():
    assert _outcome(_field('email'), 'ann@example.com').valid
    assert _outcome(_field('email'), 'not-an-email').code == 'invalid'
    assert _outcome(_field('url'), 'https://api.example.com/v1/').valid
    assert _outcome(_field('url'), 'api example').code == 'invalid'


def test_textarea_keeps_line_breaks():
    field = create_field(_field('textarea'), 'line one\r\nline <i>two</i>')
    field.validate()
    assert field.sanitized_value() == 'line one\nline two'


def test_richtext_removes_scripts_and_handlers():
    dirty = '<p onclick="steal()">Hi</p><script>alert(1)</script><a href="javascript:x()">l</a>'
    field = create_field(_field('wysiwyg'), dirty)
    assert field.validate().valid
    clean = field.sanitized_value()
    assert '<script' not in clean
    assert 'onclick' not in clean
    assert 'javascript:' not in clean
    assert '<p>Hi</p>' in clean


def test_color_and_dates():
    field = create_field(_field('color'), '#FFAA00')
    assert field.validate().valid
    assert field.sanitized_value() == '#ffaa00'
    assert _outcome(_field('color'), 'red').code == 'invalid'

    date = create_field(_field('date'), '2024-02-29')
    assert date.validate().valid
    assert date.sanitized_value() == '2024-02-29'
    assert _outcome(_field('date'), '2023-02-30').code == 'invalid'
    assert _outcome(_field('time'), '25:00').code == 'invalid'


def test_custom_rule():
    def no_admin(value, definition):
        return value != 'admin' or 'That name is reserved.'

    definition = _field('text', lambda f: f.validate_with(no_admin))
    assert _outcome(definition, 'ann').valid
    outcome = _outcome(definition, 'admin')
    assert (outcome.code, outcome.message) == ('custom', 'That name is reserved.')


# ==========================================
# Numbers
# ==========================================

@pytest.mark.parametrize('value, code', [
    ('abc', 'invalid'),
    ('0', 'min_value'),
    ('11', 'max_value'),
    ('2.5', 'step'),
])
def test_number_errors(value, code):
    definition = _field('number', lambda f: f.range(1, 10).step(1))
    assert _outcome(definition, value).code == code


def test_large_numbers_with_a_step_are_checked_exactly():
    definition = _field('number', lambda f: f.step(1))
    field = create_field(definition, '1e40')
    assert field.validate().valid
    assert field.sanitized_value() == 10 ** 40

    assert _outcome(definition, '12345678901234567890123456789012345.5').code == 'step'
    assert _outcome(_field('number', lambda f: f.step('0.01')), '1e40').valid


def test_absurd_magnitudes_are_invalid():
    definition = _field('number', lambda f: f.step(1))
    assert _outcome(definition, '1e5000').code == 'invalid'
    assert _outcome(definition, '1e-5000').code == 'invalid'


def test_number_cleans_to_int_or_float():
    field = NumberField(_field('number'), '7')
    field.validate()
    assert field.sanitized_value() == 7

    field = NumberField(_field('number'), '0.25')
    field.validate()
    assert field.sanitized_value() == 0.25


def test_empty_optional_number_is_none():
    field = create_field(_field('range'), '')
    assert field.validate().valid
    assert field.sanitized_value() is None


# ==========================================
# Choices
# ==========================================

def test_select_membership():
    definition = _field('select', lambda f: f.options({'One': 1, 'Two': 2}))
    field = create_field(definition, '2')
    assert field.validate().valid
    assert field.sanitized_value() == 2
    assert _outcome(definition, '3').code == 'invalid_choice'


def test_multi_select_checks_every_value():
    definition = _field('select', lambda f: f.options(['a', 'b', 'c']).multiple())
    field = create_field(definition, ['a', 'c'])
    assert field.validate().valid
    assert field.sanitized_value() == ['a', 'c']
    assert _outcome(definition, ['a', 'x']).code == 'invalid_choice'


def test_radio_required():
    definition = _field('radio', lambda f: f.options(['x', 'y']).required())
    assert _outcome(definition, '').code == 'required'
    assert _outcome(definition, 'y').valid


def test_switch_must_be_boolean():
    definition = _field('switch')
    for raw, expected in (('1', True), ('on', True), (True, True), (False, False), (None, False)):
        field = SwitchField(definition, raw)
        assert field.validate().valid
        assert field.sanitized_value() is expected
    assert _outcome(definition, 'maybe').code == 'invalid_choice'


def test_required_checkbox_must_be_checked():
    definition = _field('checkbox', lambda f: f.required())
    assert _outcome(definition, False).code == 'required'
    assert _outcome(definition, '1').valid


def test_checkbox_group():
    definition = _field('checkbox', lambda f: f.options({'Email': 'email', 'SMS': 'sms'}))
    field = CheckboxField(definition, ['sms'])
    assert field.validate().valid
    assert field.sanitized_value() == ['sms']

    unchecked = CheckboxField(definition, None)
    assert unchecked.validate().valid
    assert unchecked.sanitized_value() == []

    assert _outcome(definition, ['fax']).code == 'invalid_choice'


# ==========================================
# Files and secrets
# ==========================================

def _upload(name, content=b'data', content_type='application/octet-stream'):
    return SimpleUploadedFile(name, content, content_type=content_type)


def test_dangerous_file_rejected_even_when_everything_is_accepted():
    definition = _field('file', lambda f: f.accept('*'))
    outcome = _outcome(definition, _upload('shell.php', b'<?php echo 1;'))
    assert outcome.code == 'dangerous_file'

    double = _outcome(definition, _upload('shell.php.jpg', content_type='image/jpeg'))
    assert double.code == 'dangerous_file'


def test_image_within_limits_is_accepted():
    definition = _field('file', lambda f: f.accept('image/*').max_size(1024))
    upload = _upload('photo.jpg', b'\xff\xd8\xff' + b'0' * 100, 'image/jpeg')
    field = create_field(definition, upload)
    assert field.validate().valid
    assert field.sanitized_value() is upload


def test_file_type_and_size():
    definition = _field('file', lambda f: f.accept('image/*').max_size(10))
    assert _outcome(definition, _upload('notes.txt', b'hi', 'text/plain')).code == 'file_type'
    assert _outcome(definition, _upload('big.png', b'0' * 11, 'image/png')).code == 'file_size'


def test_required_file_satisfied_by_stored_file():
    definition = _field('file', lambda f: f.required())
    assert _outcome(definition, None).code == 'required'
    assert _outcome(definition, None, stored_value='uploads/abc_logo.png').valid


def test_encrypted_field():
    definition = _field('encrypted', lambda f: f.required())
    assert _outcome(definition, '').code == 'required'
    assert _outcome(definition, '', stored_value='enc:v1:AAAA').valid

    # Ciphertext is only taken back unchanged from this field's own storage.
    assert _outcome(definition, 'enc:v1:AAAA', stored_value='enc:v1:AAAA').valid
    assert _outcome(definition, 'enc:v1:garbage').code == 'invalid'
    assert _outcome(definition, 'enc:v1:BBBB', stored_value='enc:v1:AAAA').code == 'invalid'

    field = create_field(definition, ' s3cr3t <key> ')
    assert field.validate().valid
    # Secrets are validated like text but keep every character.
    assert field.sanitized_value() == ' s3cr3t <key> '


def test_conditional_required_overrides_declared_flag():
    definition = _field('text')
    assert _outcome(definition, '', required=True).code == 'required'
    assert _outcome(_field('text', lambda f: f.required()), '', required=False).valid
