from typing import Any, Dict, List, Optional


class MultiMap:
    """
    A case-insensitive, insertion ordered map of keys to lists of values.

    Keys are matched ignoring case but keep the case they were first added with.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._mappings: Dict[str, tuple] = {}  # lower-case key -> (key, [values])
        if values:
            self.put_all(values)

    def _add_value(self, key: str, value: Any, replace: bool = False) -> 'MultiMap':
        if value is None and not replace:
            return self
        key_lc = key.lower()
        mapping = self._mappings.get(key_lc)
        if mapping is None:
            mapping = (key, [])
            self._mappings[key_lc] = mapping
        vals = mapping[1]
        if replace:
            vals.clear()
        if isinstance(value, (list, tuple)):
            vals.extend(value)
        else:
            vals.append(value)
        return self

    def add(self, key: str, value: Any) -> 'MultiMap':
        # Append value(s) to key
        return self._add_value(key, value)

    def put(self, key: str, value: Any) -> 'MultiMap':
        # Replace any existing value(s) of key
        return self._add_value(key, value, replace=True)

    def put_all(self, values: Dict[str, Any]) -> 'MultiMap':
        for key, value in values.items():
            self._add_value(key, value, replace=True)
        return self

    def value(self, key: str) -> Optional[List[Any]]:
        mapping = self._mappings.get(key.lower())
        return mapping[1] if mapping else None

    def first_value(self, key: str) -> Any:
        vals = self.value(key)
        return vals[0] if vals else None

    def remove(self, key: str) -> Optional[List[Any]]:
        mapping = self._mappings.pop(key.lower(), None)
        return mapping[1] if mapping else None

    def clear(self) -> 'MultiMap':
        self._mappings.clear()
        return self

    def contains_key(self, key: str) -> bool:
        return key.lower() in self._mappings

    def key_set(self) -> List[str]:
        return [mapping[0] for mapping in self._mappings.values()]

    def size(self) -> int:
        return len(self._mappings)

    def is_empty(self) -> bool:
        return not self._mappings

    def items(self):
        for key, vals in self._mappings.values():
            yield key, list(vals)

    def __contains__(self, key: str) -> bool:
        return self.contains_key(key)

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self.items())})"
