from dataclasses import asdict, replace

import threading

# ---------- Thread-safe holder for a frozen config ----------
class ThreadSafeConfig:
    """
    Holds the current value of a frozen dataclass config.

    Frozen configs are never mutated: every change swaps in a new object built
    with dataclasses.replace, so a reader always sees one consistent value.
    """
    def __init__(self, data_obj):
        self._lock = threading.Lock()
        self._data = data_obj

    def get(self):
        with self._lock:
            return self._data

    def set(self, field, value):
        self.update(**{field: value})

    def update(self, **kwargs):
        with self._lock:
            self._data = replace(self._data, **kwargs)
            return self._data

    def replace_all(self, data_obj):
        with self._lock:
            self._data = data_obj

    def get_field(self, field):
        with self._lock:
            return getattr(self._data, field)

    def asdict(self):
        with self._lock:
            return asdict(self._data)
