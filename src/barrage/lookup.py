from typing import Any


class _Missing:
    """Marks a path that does not resolve. Distinct from None (JSON null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def lookup(document: Any, path: str) -> Any:
    """
    Resolve a dot-separated path like "data.user.id" against a parsed JSON
    value by descending through object keys. Returns MISSING when any key on
    the way is absent or the current value is not an object.
    """
    return _descend(document, path.split("."))


def _descend(node: Any, keys: list[str]) -> Any:
    if not keys:
        return node
    if not isinstance(node, dict):
        return MISSING
    head, *rest = keys
    if head not in node:
        return MISSING
    return _descend(node[head], rest)
