"""Apply diff patches from the live feed to the in-memory snapshot.

The feed sends batches of JSON-patch style operations::

    [{"op": "replace", "path": "/liveData/plays/currentPlay/count/balls", "value": 2},
     {"op": "add", "path": "/liveData/plays/allPlays/57", "value": {...}}]

Operations in a batch are applied in order against the live document, so a
later operation can address something an earlier one added. A batch is all
or nothing: if any operation fails, the ones already applied are undone in
reverse order before ``PatchError`` is raised.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from typing import Any

logger = logging.getLogger(__name__)

SUPPORTED_OPS = frozenset({"add", "replace", "remove"})

Undo = Callable[[], None]


class PatchError(Exception):
    """Raised when an operation cannot be applied to the document."""

    def __init__(self, message: str, operation: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.operation = operation


def parse_pointer(path: str) -> list[str]:
    """Split a JSON pointer into unescaped reference tokens."""
    if path == "":
        return []
    if not path.startswith("/"):
        raise PatchError(f"path must start with '/': {path!r}")
    return [token.replace("~1", "/").replace("~0", "~") for token in path[1:].split("/")]


def _list_index(token: str, length: int, *, allow_end: bool = False) -> int:
    if allow_end and token == "-":
        return length
    if not token.isdigit() or (len(token) > 1 and token.startswith("0")):
        raise PatchError(f"invalid array index {token!r}")
    index = int(token)
    upper = length if allow_end else length - 1
    if index > upper:
        raise PatchError(f"array index {index} out of range (length {length})")
    return index


def _child(node: Any, token: str) -> Any:
    if isinstance(node, dict):
        if token not in node:
            raise PatchError(f"missing key {token!r}")
        return node[token]
    if isinstance(node, list):
        return node[_list_index(token, len(node))]
    raise PatchError(f"cannot descend into {type(node).__name__} with {token!r}")


def _parent(document: Any, tokens: list[str]) -> Any:
    node = document
    for token in tokens[:-1]:
        node = _child(node, token)
    return node


def _replace_root(document: dict[str, Any], value: Any) -> Undo:
    if not isinstance(document, dict) or not isinstance(value, dict):
        raise PatchError("root can only be replaced by an object")
    previous = dict(document)
    document.clear()
    document.update(value)

    def undo() -> None:
        document.clear()
        document.update(previous)

    return undo


def _add(document: Any, tokens: list[str], value: Any) -> Undo:
    if not tokens:
        return _replace_root(document, value)
    parent = _parent(document, tokens)
    key = tokens[-1]
    if isinstance(parent, dict):
        existed = key in parent
        previous = parent.get(key)
        parent[key] = value

        def undo_dict() -> None:
            if existed:
                parent[key] = previous
            else:
                del parent[key]

        return undo_dict
    if isinstance(parent, list):
        index = _list_index(key, len(parent), allow_end=True)
        parent.insert(index, value)

        def undo_list() -> None:
            del parent[index]

        return undo_list
    raise PatchError(f"cannot add into {type(parent).__name__}")


def _replace(document: Any, tokens: list[str], value: Any) -> Undo:
    if not tokens:
        return _replace_root(document, value)
    parent = _parent(document, tokens)
    key = tokens[-1]
    if isinstance(parent, dict):
        if key not in parent:
            raise PatchError(f"cannot replace missing key {key!r}")
        slot: Any = key
    elif isinstance(parent, list):
        slot = _list_index(key, len(parent))
    else:
        raise PatchError(f"cannot replace inside {type(parent).__name__}")
    previous = parent[slot]
    parent[slot] = value

    def undo() -> None:
        parent[slot] = previous

    return undo


def _remove(document: Any, tokens: list[str]) -> Undo:
    if not tokens:
        raise PatchError("cannot remove the document root")
    parent = _parent(document, tokens)
    key = tokens[-1]
    if isinstance(parent, dict):
        if key not in parent:
            raise PatchError(f"cannot remove missing key {key!r}")
        previous = parent.pop(key)

        def undo_dict() -> None:
            parent[key] = previous

        return undo_dict
    if isinstance(parent, list):
        index = _list_index(key, len(parent))
        removed = parent.pop(index)

        def undo_list() -> None:
            parent.insert(index, removed)

        return undo_list
    raise PatchError(f"cannot remove from {type(parent).__name__}")


def _apply_one(document: Any, operation: dict[str, Any]) -> Undo:
    op = operation.get("op")
    path = operation.get("path")
    if op not in SUPPORTED_OPS:
        raise PatchError(f"unsupported op {op!r}", operation)
    if not isinstance(path, str):
        raise PatchError("operation has no path", operation)
    tokens = parse_pointer(path)
    if op == "remove":
        return _remove(document, tokens)
    if "value" not in operation:
        raise PatchError(f"{op} operation has no value", operation)
    value = copy.deepcopy(operation["value"])
    if op == "add":
        return _add(document, tokens, value)
    return _replace(document, tokens, value)


def apply_patch(document: dict[str, Any], operations: Iterable[dict[str, Any]]) -> int:
    """Apply a batch of operations to ``document`` in place.

    Returns the number of operations applied. On failure the document is
    restored to its pre-batch state and ``PatchError`` is raised.
    """
    undo_log: list[Undo] = []
    for operation in operations:
        try:
            if not isinstance(operation, dict):
                raise PatchError("operation is not an object")
            undo_log.append(_apply_one(document, operation))
        except PatchError as exc:
            if exc.operation is None and isinstance(operation, dict):
                exc.operation = operation
            for undo in reversed(undo_log):
                undo()
            logger.debug("patch_rolled_back applied=%d error=%s", len(undo_log), exc)
            raise
    return len(undo_log)
