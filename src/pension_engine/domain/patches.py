"""JSON Patch (RFC 6902) operations between two situation documents.

Objects are diffed key by key. Arrays that differ are rewritten wholesale:
every old element is removed from the end, then every new one is added.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Literal, TypeAlias

PatchOp: TypeAlias = Literal["add", "remove", "replace"]


@dataclass(frozen=True, slots=True)
class PatchOperation:
    op: PatchOp
    path: str
    value: object | None = None


def _escape(key: str) -> str:
    return key.replace("~", "~0").replace("/", "~1")


def diff(before: object, after: object, path: str = "") -> list[PatchOperation]:
    """Operations that turn ``before`` into ``after``."""

    operations: list[PatchOperation] = []
    _diff(before, after, path, operations)
    return operations


def _diff(before: object, after: object, path: str, operations: list[PatchOperation]) -> None:
    if before == after and type(before) is type(after):
        return
    if before is None:
        operations.append(PatchOperation("add", path, after))
        return
    if after is None:
        operations.append(PatchOperation("remove", path))
        return
    if isinstance(before, dict) and isinstance(after, dict):
        _diff_objects(before, after, path, operations)
        return
    if isinstance(before, list) and isinstance(after, list):
        for index in range(len(before) - 1, -1, -1):
            operations.append(PatchOperation("remove", f"{path}/{index}"))
        for index, item in enumerate(after):
            operations.append(PatchOperation("add", f"{path}/{index}", item))
        return
    operations.append(PatchOperation("replace", path, after))


def _diff_objects(
    before: dict[str, object],
    after: dict[str, object],
    path: str,
    operations: list[PatchOperation],
) -> None:
    for key in before:
        if key not in after:
            operations.append(PatchOperation("remove", f"{path}/{_escape(key)}"))
    for key, value in after.items():
        child = f"{path}/{_escape(key)}"
        if key not in before:
            operations.append(PatchOperation("add", child, value))
        elif before[key] is not None and value is not None:
            _diff(before[key], value, child, operations)
        elif before[key] != value:
            operations.append(PatchOperation("replace", child, value))


def apply_patch(document: object, operations: list[PatchOperation]) -> object:
    """Apply ``operations`` to a deep copy of ``document``."""

    result = copy.deepcopy(document)
    for operation in operations:
        result = _apply_one(result, operation)
    return result


def _apply_one(document: object, operation: PatchOperation) -> object:
    if operation.path == "":
        return None if operation.op == "remove" else operation.value

    *parents, last = [
        part.replace("~1", "/").replace("~0", "~") for part in operation.path.split("/")[1:]
    ]
    target = document
    for part in parents:
        key = int(part) if isinstance(target, list) else part
        target = target[key]  # type: ignore[index]

    if isinstance(target, list):
        index = int(last)
        if operation.op == "remove":
            del target[index]
        elif operation.op == "add":
            target.insert(index, operation.value)
        else:
            target[index] = operation.value
    elif isinstance(target, dict):
        if operation.op == "remove":
            del target[last]
        else:
            target[last] = operation.value
    else:
        raise ValueError(f"Cannot apply {operation.op} at {operation.path}")
    return document
