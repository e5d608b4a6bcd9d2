from ..models import EntityMeta, Option
from .cache import RequestCache

# =========================================================
# Key/value stores backing the persistence strategies
# =========================================================


class OptionStore:
    """Site wide key/value store: get(key) / set(key, value)."""

    namespace = 'option'

    def __init__(self, cache=None):
        self.cache = cache if cache is not None else RequestCache()

    def get(self, key, default=None):
        value = self.cache.get_or_set(self.namespace, key, lambda: self._fetch(key))
        return default if value is None else value

    def get_many(self, keys):
        missing = [k for k in keys if not self.cache.has(self.namespace, k)]
        if missing:
            found = dict(Option.objects.filter(key__in=missing).values_list('key', 'value'))
            for key in missing:
                self.cache.set(self.namespace, key, found.get(key))
        return {k: self.cache.get(self.namespace, k) for k in keys}

    def set(self, key, value):
        Option.objects.update_or_create(key=key, defaults={'value': value})
        self.cache.set(self.namespace, key, value)

    def forget(self, key):
        self.cache.forget(self.namespace, key)

    def add(self, key, value):
        """Writes only if the key does not exist yet. Returns the stored value."""
        option, _created = Option.objects.get_or_create(key=key, defaults={'value': value})
        self.cache.set(self.namespace, key, option.value)
        return option.value

    def _fetch(self, key):
        return Option.objects.filter(key=key).values_list('value', flat=True).first()


class EntityMetaStore:
    """Key/value pairs scoped to one entity id."""

    def __init__(self, entity_id, cache=None):
        self.entity_id = entity_id
        self.cache = cache if cache is not None else RequestCache()
        self.namespace = f"meta:{entity_id}"

    def get(self, key, default=None):
        value = self.cache.get_or_set(self.namespace, key, lambda: self._fetch(key))
        return default if value is None else value

    def get_many(self, keys):
        missing = [k for k in keys if not self.cache.has(self.namespace, k)]
        if missing:
            found = dict(
                EntityMeta.objects.filter(entity_id=self.entity_id, meta_key__in=missing)
                .values_list('meta_key', 'meta_value'))
            for key in missing:
                self.cache.set(self.namespace, key, found.get(key))
        return {k: self.cache.get(self.namespace, k) for k in keys}

    def set(self, key, value):
        EntityMeta.objects.update_or_create(
            entity_id=self.entity_id, meta_key=key, defaults={'meta_value': value})
        self.cache.set(self.namespace, key, value)

    def forget(self, key):
        self.cache.forget(self.namespace, key)

    def _fetch(self, key):
        return (EntityMeta.objects
                .filter(entity_id=self.entity_id, meta_key=key)
                .values_list('meta_value', flat=True).first())
