import logging

from django.db import DatabaseError, transaction

from ..exceptions import PersistError
from .storage import EntityMetaStore, OptionStore

logger = logging.getLogger(__name__)


class PersistenceStrategy:
    """
    Where a form's validated values live.

    commit(data) writes every key or none of them and raises PersistError
    on failure. load(names) returns {name: stored value} for what exists.
    """

    label = 'custom'

    def commit(self, data, cache=None):
        try:
            with transaction.atomic():
                self._write(data, cache)
        except DatabaseError as e:
            # Rolled back: the request cache must not keep what was never committed.
            if cache is not None:
                self._forget(data, cache)
            logger.error(f"{self.label} persistence failed: {e}")
            raise PersistError(f"Could not save values ({self.label}).") from e

    def load(self, names, cache=None):
        try:
            return self._read(list(names), cache)
        except DatabaseError as e:
            logger.error(f"{self.label} load failed: {e}")
            return {}

    def _write(self, data, cache):
        raise NotImplementedError

    def _read(self, names, cache):
        raise NotImplementedError

    def _forget(self, data, cache):
        raise NotImplementedError


class OptionsStrategy(PersistenceStrategy):
    """One site wide option per field, keyed "<prefix><name><suffix>"."""

    label = 'options'

    def __init__(self, prefix='', suffix=''):
        self.prefix = prefix
        self.suffix = suffix

    def key_for(self, name):
        return f"{self.prefix}{name}{self.suffix}"

    def _write(self, data, cache):
        store = OptionStore(cache=cache)
        for name, value in data.items():
            store.set(self.key_for(name), value)

    def _forget(self, data, cache):
        store = OptionStore(cache=cache)
        for name in data:
            store.forget(self.key_for(name))

    def _read(self, names, cache):
        store = OptionStore(cache=cache)
        keys = {self.key_for(name): name for name in names}
        found = store.get_many(list(keys))
        return {keys[key]: value for key, value in found.items() if value is not None}


class EntityMetaStrategy(PersistenceStrategy):
    """Field values stored as metadata of one entity, keyed by field name."""

    label = 'entity_meta'

    def __init__(self, entity_id):
        self.entity_id = entity_id

    def _write(self, data, cache):
        store = EntityMetaStore(self.entity_id, cache=cache)
        for name, value in data.items():
            store.set(name, value)

    def _forget(self, data, cache):
        store = EntityMetaStore(self.entity_id, cache=cache)
        for name in data:
            store.forget(name)

    def _read(self, names, cache):
        store = EntityMetaStore(self.entity_id, cache=cache)
        found = store.get_many(names)
        return {name: value for name, value in found.items() if value is not None}


class CallbackStrategy(PersistenceStrategy):
    """
    Hands the data to a caller supplied function. A falsy return counts
    as failure; so does any exception it raises.
    """

    def __init__(self, callback, loader=None):
        self.callback = callback
        self.loader = loader

    def commit(self, data, cache=None):
        try:
            ok = self.callback(dict(data))
        except PersistError:
            raise
        except Exception as e:
            logger.exception(f"Custom save callback failed: {e}")
            raise PersistError("Custom save callback failed.") from e
        if not ok:
            raise PersistError("Custom save callback reported failure.")

    def load(self, names, cache=None):
        if self.loader is None:
            return {}
        stored = self.loader(list(names)) or {}
        return {name: stored[name] for name in names if name in stored}
