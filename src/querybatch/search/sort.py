import json
from typing import Any, Callable, Dict, List, Optional, Union

SortEntry = Union[str, Dict[str, Any]]


class Sort:
    """
    Ordered list of sort criteria.

    Entries keep the order of the calls that added them:

        Sort().by("title", "desc").by("_score").to_list()
        # [{"title": "desc"}, "_score"]
    """

    def __init__(self, block: Optional[Callable[["Sort"], Any]] = None):
        self._value: List[SortEntry] = []
        if block is not None:
            block(self)

    def by(self, name: str, direction: Optional[str] = None) -> "Sort":
        self._value.append({name: direction} if direction else name)
        return self

    def geo(self, location: Any) -> "Sort":
        self._value.append(
            {
                "_geo_distance": {
                    "location": location,
                    "order": "asc",
                    "unit": "km",
                }
            }
        )
        return self

    def extend(self, entries: List[SortEntry]) -> "Sort":
        self._value.extend(entries)
        return self

    def to_list(self) -> List[SortEntry]:
        return list(self._value)

    def to_json(self) -> str:
        return json.dumps(self._value, separators=(",", ":"))

    def __len__(self) -> int:
        return len(self._value)

    def __repr__(self) -> str:
        return f"Sort({self._value!r})"
