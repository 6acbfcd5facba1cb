import json
from typing import Any, Dict, Optional, Union

HighlightField = Union[str, Dict[str, Dict[str, Any]]]


class Highlight:
    """
    Highlight specification for one or more fields.

    Fields are given by name, or as a mapping of name to per-field
    options (`fragment_size`, `number_of_fragments`, ...):

        Highlight("body", {"title": {"fragment_size": 150}})

    Request-wide options go to `options`; `tags=[pre, post]` is expanded
    into `pre_tags` / `post_tags`.
    """

    def __init__(self, *fields: HighlightField, options: Optional[Dict[str, Any]] = None):
        self.options = self._extract_tags(dict(options or {}))
        self.fields = []
        for field in fields:
            if isinstance(field, (list, tuple)):
                self.fields.extend(field)
            else:
                self.fields.append(field)

    @staticmethod
    def _extract_tags(options: Dict[str, Any]) -> Dict[str, Any]:
        tags = options.pop("tags", None)
        if tags:
            pre, post = tags
            options["pre_tags"] = [pre]
            options["post_tags"] = [post]
        return options

    def to_dict(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for field in self.fields:
            if isinstance(field, dict):
                fields.update(field)
            else:
                fields[field] = {}
        return {"fields": fields, **self.options}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))
