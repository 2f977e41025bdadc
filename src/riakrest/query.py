"""Multi-hop link traversal.

A traversal is a list of steps ``(target, tag)`` or ``(target, tag, acc)``.
``target`` is a Bucket or a Resource class; the objects reached by the last
step are decoded with the last target's record type.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from riakrest.bucket import Bucket
from riakrest.errors import InvalidQuery, LinkShapeError
from riakrest.links import QueryLink

if TYPE_CHECKING:
    from riakrest.gateway import StorageGateway
    from riakrest.objects import StoredObject

_STEP_SHAPE = "each step should be (target, tag) or (target, tag, acc)"


def target_bucket(target: Any) -> Bucket:
    """The bucket a step target refers to."""
    if isinstance(target, Bucket):
        return target
    resource_type = getattr(target, "__resource__", None)
    bucket = getattr(resource_type, "bucket", None)
    if isinstance(target, type) and isinstance(bucket, Bucket):
        return bucket
    raise InvalidQuery(f"Step target must be a Bucket or a Resource class, got {target!r}")


def _steps(steps: Iterable[Any]) -> list[tuple[Any, ...]]:
    steps = list(steps)
    if not steps:
        raise InvalidQuery("A traversal needs at least one step")
    for step in steps:
        if not isinstance(step, tuple) or len(step) not in (2, 3):
            raise InvalidQuery(f"{_STEP_SHAPE}, got {step!r}")
    return steps


class TraversalPlanner:
    def __init__(self, gateway: StorageGateway) -> None:
        self._gateway = gateway

    @staticmethod
    def plan(steps: Iterable[Any]) -> list[QueryLink]:
        """Translate steps into query links, one per hop."""
        links = []
        for step in _steps(steps):
            bucket = target_bucket(step[0])
            try:
                links.append(QueryLink(bucket, *step[1:]))
            except LinkShapeError as e:
                raise InvalidQuery(f"{_STEP_SHAPE}: {e}") from e
        return links

    @staticmethod
    def final_target(steps: Iterable[Any]) -> Any:
        return _steps(steps)[-1][0]

    def walk(self, origin: StoredObject, steps: Iterable[Any]) -> list[StoredObject]:
        """Objects reached from ``origin`` by following ``steps``. Empty when nothing matches."""
        steps = _steps(steps)
        links = self.plan(steps)
        if not origin.key:
            raise InvalidQuery("Cannot walk from an object without a key")
        target = target_bucket(steps[-1][0])
        return self._gateway.walk(origin.bucket, origin.key, links, target)
