"""
Field Path Resolution Module.

Paths are dot-separated field names with optional list indexes, for example
"ip_permissions[0].from_port". Resolution is checked against the snapshot
type, so a misspelt field is reported as a schema error rather than as a
failed assertion.
"""

import dataclasses
import re
from collections.abc import Mapping
from typing import Any, List, Tuple, Union

from ...errors import SchemaMismatchError
from ..types import OutputSet

_SEGMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_\-]*)((?:\[\d+\])*)$")
_INDEX = re.compile(r"\[(\d+)\]")

# Marker for "the path is valid for this type but the value is absent"
MISSING = None

PathStep = Union[str, int]


def parse_path(path: str) -> List[PathStep]:
    """Splits "a.b[0].c" into ["a", "b", 0, "c"]."""
    if not path:
        raise SchemaMismatchError("Empty field path")
    steps: List[PathStep] = []
    for segment in path.split("."):
        match = _SEGMENT.match(segment)
        if not match:
            raise SchemaMismatchError(f"Malformed field path segment '{segment}' in '{path}'")
        steps.append(match.group(1))
        steps.extend(int(index) for index in _INDEX.findall(match.group(2)))
    return steps


def snapshot_kind(snapshot: Any) -> str:
    """VpcSnapshot -> "vpc", SecurityGroupSnapshot -> "security_group", OutputSet -> "outputs"."""
    if isinstance(snapshot, OutputSet):
        return "outputs"
    name = type(snapshot).__name__
    if name.endswith("Snapshot"):
        name = name[: -len("Snapshot")]
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def resolve_path(snapshot: Any, path: str) -> Tuple[Any, bool]:
    """
    Resolves a field path against a snapshot.

    Args:
        snapshot: Snapshot dataclass or OutputSet
        path: Field path; may start with the snapshot's kind, e.g. "vpc.cidr"

    Returns:
        (value, found). found is False when a list index is out of range.

    Raises:
        SchemaMismatchError: If a field does not exist on the type
    """
    steps = parse_path(path)
    if (
        len(steps) > 1
        and steps[0] == snapshot_kind(snapshot)
        and not _has_field(snapshot, steps[0])
    ):
        steps = steps[1:]

    current = snapshot
    for step in steps:
        if isinstance(step, int):
            if not isinstance(current, (list, tuple)):
                raise SchemaMismatchError(
                    f"'{path}': cannot index into {type(current).__name__}"
                )
            if step >= len(current):
                return MISSING, False
            current = current[step]
            continue
        if not _has_field(current, step):
            raise SchemaMismatchError(
                f"'{path}': {type(current).__name__} has no field '{step}'"
            )
        if isinstance(current, Mapping):
            current = current[step]
        else:
            current = getattr(current, step)
    return current, True


def _has_field(value: Any, name: str) -> bool:
    if isinstance(value, Mapping):
        return name in value
    if dataclasses.is_dataclass(value):
        return name in {f.name for f in dataclasses.fields(value)}
    return False
