"""
Task Buffer - objects resolved earlier in a task, offered to its later actions.

Provides:
    - BufferedObject: one saved pallet / bin / product with where it came from
    - TaskBuffer: one object per (object kind, target field group), last write wins

The buffer lives in the task cache, one per task, and is reached through the
task session. The wizard fills it after a successful submission and reads it
when it arrives at a step with nothing recorded yet.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from warehouse_operator.core.models.domain import ObjectKind, TargetField

logger = logging.getLogger(__name__)

BufferKey = Tuple[ObjectKind, Optional[TargetField]]


@dataclass(frozen=True)
class BufferedObject:
    kind: ObjectKind
    target: Optional[TargetField]
    value: Any
    source: str                        # "<action id>/<step id>"
    saved_at: datetime = field(default_factory=datetime.now)


class TaskBuffer:
    """Current object per key plus a bounded history of everything saved."""

    MAX_HISTORY = 20

    def __init__(self, task_id: str):
        self.task_id = task_id
        self._objects: Dict[BufferKey, BufferedObject] = {}
        self._history: List[BufferedObject] = []

    def put(self, kind: ObjectKind, target: Optional[TargetField], value: Any, source: str) -> BufferedObject:
        entry = BufferedObject(kind=kind, target=target, value=value, source=source)
        self._objects[(kind, target)] = entry
        self._history.append(entry)
        del self._history[:-self.MAX_HISTORY]
        logger.debug(f"Task {self.task_id} buffer: {kind.value} <- {value!r} from {source}")
        return entry

    def get(self, kind: ObjectKind, target: Optional[TargetField]) -> Optional[BufferedObject]:
        return self._objects.get((kind, target))

    def clear_field(self, kind: ObjectKind, target: Optional[TargetField]) -> None:
        self._objects.pop((kind, target), None)

    def clear(self) -> None:
        self._objects.clear()
        self._history.clear()

    @property
    def history(self) -> List[BufferedObject]:
        return list(self._history)

    def __len__(self) -> int:
        return len(self._objects)
