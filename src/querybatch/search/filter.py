import json
from typing import Any, Dict, Optional


class Filter:
    """Single non-scoring filter clause, serialized as `{type: body}`."""

    def __init__(self, type: str, body: Optional[Any] = None, **fields: Any):
        if body is None:
            body = fields
        elif fields:
            body = {**body, **fields}
        self.type = type
        self.body = body

    def to_dict(self) -> Dict[str, Any]:
        return {self.type: self.body}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def __getitem__(self, key: str) -> Any:
        return self.to_dict()[key]

    def __repr__(self) -> str:
        return f"Filter({self.to_dict()!r})"
