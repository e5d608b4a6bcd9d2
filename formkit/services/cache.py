class RequestCache:
    """
    Memo for lookups made while handling one request. Create one per
    request and drop it afterwards; nothing here is shared across requests.
    """

    _missing = object()

    def __init__(self):
        self._data = {}

    def get(self, namespace, key, default=None):
        return self._data.get((namespace, key), default)

    def has(self, namespace, key):
        return (namespace, key) in self._data

    def set(self, namespace, key, value):
        self._data[(namespace, key)] = value

    def get_or_set(self, namespace, key, factory):
        value = self._data.get((namespace, key), self._missing)
        if value is self._missing:
            value = factory()
            self._data[(namespace, key)] = value
        return value

    def forget(self, namespace, key):
        self._data.pop((namespace, key), None)

    def clear(self):
        self._data.clear()

    def __len__(self):
        return len(self._data)
