from collections.abc import Mapping
from typing import Any, Dict, Iterator


class Item:
    """
    Read-only view over one returned document.

    Fields are reachable both as attributes and as keys; nested
    mappings come back as `Item` instances, lists of mappings as lists
    of `Item`:

        item.title, item["title"], item.author.name

    Only `id`, `type` and `to_dict` are methods of the view itself, so any
    other field name (`keys`, `values`, ...) resolves to the document.
    `type` prefers the `_type` meta field and falls back to a `type` field.
    """

    def __init__(self, attributes: Mapping[str, Any]):
        object.__setattr__(self, "_attributes", {
            key: self._wrap(value) for key, value in attributes.items()
        })
        object.__setattr__(self, "_raw", dict(attributes))

    @classmethod
    def _wrap(cls, value: Any) -> Any:
        if isinstance(value, Mapping) and not isinstance(value, Item):
            return cls(value)
        if isinstance(value, list):
            return [cls._wrap(v) for v in value]
        return value

    def __getattr__(self, name: str) -> Any:
        if name in ("_attributes", "_raw"):
            raise AttributeError(name)
        try:
            return self._attributes[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __getitem__(self, key: str) -> Any:
        return self._attributes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __contains__(self, key: object) -> bool:
        return key in self._attributes

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Item):
            return self._raw == other._raw
        if isinstance(other, Mapping):
            return self._raw == dict(other)
        return NotImplemented

    __hash__ = None

    @property
    def id(self) -> Any:
        return self._attributes.get("id")

    @property
    def type(self) -> Any:
        if self._attributes.get("_type") is not None:
            return self._attributes["_type"]
        return self._attributes.get("type")

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._raw)

    def __repr__(self) -> str:
        return f"<Item {self._raw!r}>"
