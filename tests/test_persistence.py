from unittest import mock

import pytest
from django.db import DatabaseError

from formkit.exceptions import PersistError
from formkit.models import EntityMeta, Option
from formkit.services.cache import RequestCache
from formkit.services.persistence import (
    CallbackStrategy,
    EntityMetaStrategy,
    OptionsStrategy,
)
from formkit.services.storage import OptionStore

pytestmark = pytest.mark.django_db


def test_options_strategy_writes_prefixed_keys():
    strategy = OptionsStrategy(prefix='general_')
    strategy.commit({'site_name': 'Acme', 'notify': False, 'tags': ['a']})

    stored = dict(Option.objects.values_list('key', 'value'))
    assert stored == {'general_site_name': 'Acme', 'general_notify': False, 'general_tags': ['a']}


def test_options_strategy_load_skips_missing_keys():
    Option.objects.create(key='general_site_name', value='Acme')
    strategy = OptionsStrategy(prefix='general_')

    assert strategy.load(['site_name', 'logo']) == {'site_name': 'Acme'}


def test_unsubmitted_keys_are_not_overwritten():
    strategy = OptionsStrategy(prefix='p_')
    strategy.commit({'a': 'one', 'b': 'two'})
    strategy.commit({'a': 'uno'})

    assert strategy.load(['a', 'b']) == {'a': 'uno', 'b': 'two'}


def test_suffix_is_applied():
    OptionsStrategy(prefix='x_', suffix='_v2').commit({'name': 'n'})
    assert Option.objects.filter(key='x_name_v2').exists()


def test_entity_meta_is_scoped_per_entity():
    EntityMetaStrategy(1).commit({'theme': 'dark'})
    EntityMetaStrategy(2).commit({'theme': 'light'})

    assert EntityMetaStrategy(1).load(['theme']) == {'theme': 'dark'}
    assert EntityMetaStrategy(2).load(['theme']) == {'theme': 'light'}
    assert EntityMeta.objects.count() == 2


def test_entity_meta_update_keeps_one_row():
    strategy = EntityMetaStrategy(7)
    strategy.commit({'theme': 'dark'})
    strategy.commit({'theme': 'light'})

    assert EntityMeta.objects.get(entity_id=7, meta_key='theme').meta_value == 'light'


def test_callback_strategy_reports_its_result():
    received = []

    def save(data):
        received.append(data)
        return True

    CallbackStrategy(save).commit({'a': 1})
    assert received == [{'a': 1}]

    with pytest.raises(PersistError):
        CallbackStrategy(lambda data: False).commit({'a': 1})


def test_callback_exception_becomes_persist_error():
    def explode(data):
        raise RuntimeError('backend down')

    with pytest.raises(PersistError) as exc:
        CallbackStrategy(explode).commit({'a': 1})
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_callback_loader():
    strategy = CallbackStrategy(lambda data: True, loader=lambda names: {'a': 1, 'zzz': 2})
    assert strategy.load(['a', 'b']) == {'a': 1}
    assert CallbackStrategy(lambda data: True).load(['a']) == {}


def test_database_failure_is_all_or_nothing():
    strategy = OptionsStrategy(prefix='atomic_')
    original = OptionStore.set
    calls = []

    def flaky_set(store, key, value):
        calls.append(key)
        if len(calls) == 2:
            raise DatabaseError('disk full')
        return original(store, key, value)

    with mock.patch.object(OptionStore, 'set', flaky_set):
        with pytest.raises(PersistError):
            strategy.commit({'a': 1, 'b': 2})

    assert not Option.objects.filter(key__startswith='atomic_').exists()


def test_request_cache_avoids_repeat_queries(django_assert_num_queries):
    Option.objects.create(key='c_a', value=1)
    cache = RequestCache()
    strategy = OptionsStrategy(prefix='c_')

    with django_assert_num_queries(1):
        strategy.load(['a', 'b'], cache=cache)
        strategy.load(['a', 'b'], cache=cache)
        assert OptionStore(cache=cache).get('c_a') == 1


def test_rolled_back_commit_leaves_no_trace_in_the_request_cache():
    Option.objects.create(key='rb_a', value='old')
    cache = RequestCache()
    strategy = OptionsStrategy(prefix='rb_')
    assert strategy.load(['a'], cache=cache) == {'a': 'old'}

    original = OptionStore.set

    def failing_second_set(store, key, value):
        if key == 'rb_b':
            raise DatabaseError('disk full')
        return original(store, key, value)

    with mock.patch.object(OptionStore, 'set', failing_second_set):
        with pytest.raises(PersistError):
            strategy.commit({'a': 'new', 'b': 'x'}, cache=cache)

    assert not cache.has('option', 'rb_a')
    assert strategy.load(['a', 'b'], cache=cache) == {'a': 'old'}
