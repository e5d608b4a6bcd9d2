from formkit.builder import FormBuilder
from formkit.definitions import when
from formkit.validator import validate_form


def test_scenario_unchecked_gate(scenario_form):
    report = validate_form({'enable': False}, scenario_form)
    assert report.valid
    assert report.data == {'enable': False}
    assert 'name' not in report.data


def test_scenario_checked_gate_requires_name(scenario_form):
    report = validate_form({'enable': True, 'name': ''}, scenario_form)
    assert not report.valid
    assert report.error_codes == {'name': 'required'}
    assert report.errors == {'name': 'Name is required.'}


def test_scenario_checked_gate_with_name(scenario_form):
    report = validate_form({'enable': True, 'name': 'Ann'}, scenario_form)
    assert report.valid
    assert report.data == {'enable': True, 'name': 'Ann'}


def test_hidden_field_never_validated_nor_stored(scenario_form):
    # A stale or forged value for a hidden field is dropped, not validated.
    report = validate_form({'enable': False, 'name': '<bad>' * 100}, scenario_form)
    assert report.valid
    assert report.visible == {'enable': True, 'name': False}
    assert 'name' not in report.data


def test_errors_are_collected_for_every_field():
    form = FormBuilder('many')
    form.add('a', 'text').required()
    form.add('b', 'number').max(3)
    form.add('c', 'email')
    definition = form.build()

    report = validate_form({'a': '', 'b': '9', 'c': 'nope'}, definition)
    assert report.error_codes == {'a': 'required', 'b': 'max_value', 'c': 'invalid'}
    assert list(report.errors) == ['a', 'b', 'c']


def test_unsubmitted_fields_are_left_out_except_checkboxes():
    form = FormBuilder('partial')
    form.add('title', 'text')
    form.add('notify', 'switch')
    form.add('tags', 'checkbox').options(['x', 'y'])
    definition = form.build()

    report = validate_form({}, definition)
    assert report.valid
    assert report.data == {'notify': False, 'tags': []}


def test_blank_secret_keeps_the_stored_one():
    form = FormBuilder('secret')
    form.add('api_key', 'encrypted').required()
    definition = form.build()

    report = validate_form({'api_key': ''}, definition, stored_values={'api_key': 'enc:v1:xyz'})
    assert report.valid
    assert report.data == {}


def test_validation_has_no_side_effects(scenario_form):
    values = {'enable': True, 'name': '  Ann  '}
    snapshot = dict(values)

    first = validate_form(values, scenario_form)
    second = validate_form(values, scenario_form)

    assert values == snapshot
    assert first == second


def test_or_branch_visibility_during_validation():
    form = FormBuilder('auth')
    form.add('auth_method', 'select').options(['none', 'basic', 'oauth']).default('none')
    form.add('debug', 'checkbox')
    form.add('client_id', 'text').required().show_when([
        [when('auth_method', 'equals', 'oauth')],
        [when('auth_method', 'equals', 'basic'), when('debug', 'is_checked')],
    ])
    definition = form.build()

    assert validate_form({'auth_method': 'none', 'debug': True}, definition).valid
    assert validate_form({'auth_method': 'basic', 'debug': False}, definition).valid
    assert not validate_form({'auth_method': 'basic', 'debug': True}, definition).valid
    assert not validate_form({'auth_method': 'oauth'}, definition).valid


def test_field_problems_never_escape_as_exceptions():
    form = FormBuilder('edge')
    form.add('qty', 'number', 'Qty').step(1)
    form.add('name', 'text').required()
    definition = form.build()

    report = validate_form({'qty': '1e40', 'name': '<b></b>'}, definition)
    assert not report.valid
    assert report.error_codes == {'name': 'required'}

    report = validate_form({'qty': '1e40.5', 'name': 'Ann'}, definition)
    assert report.error_codes == {'qty': 'invalid'}
