"""
Task Cache - in-memory holder of the tasks the operator is working on.

The wizard reads its planned action + template from here and, after a
successful submission, writes the fact record back. Updates are
last-write-wins; nothing is persisted.

Instead of a process-wide "current task" holder, callers open a TaskSession
for one task when a wizard starts and close it when the wizard finishes:

    cache = TaskCache()
    cache.put_task(task)
    session = cache.open_session(task.id)
    action = session.get_planned_action("pa-1")
    ...
    session.close()

Each cached task also owns a TaskBuffer (session.buffer) that survives the
sessions opened on it.
"""

from datetime import datetime
from typing import Dict, List, Optional
import logging

import warehouse_operator.core.models.domain as dm
from warehouse_operator.repositories.base import DuplicateEntityError, EntityNotFoundError
from warehouse_operator.repositories.task_buffer import TaskBuffer

logger = logging.getLogger(__name__)


class TaskCache:
    """In-memory task store."""

    def __init__(self, tasks: Optional[List[dm.Task]] = None):
        self._tasks: Dict[str, dm.Task] = {}
        self._buffers: Dict[str, TaskBuffer] = {}
        for task in tasks or []:
            self.put_task(task)

    def put_task(self, task: dm.Task) -> None:
        """Insert or replace a task (last write wins)."""
        self._tasks[task.id] = task

    def add_task(self, task: dm.Task) -> None:
        if task.id in self._tasks:
            raise DuplicateEntityError(f"Task already cached: {task.id}")
        self._tasks[task.id] = task

    def get_task(self, task_id: str) -> dm.Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise EntityNotFoundError(f"Task not found: {task_id}")
        return task

    def get_planned_action(self, task_id: str, action_id: str) -> dm.PlannedAction:
        """
        Get a planned action (with its template) of a cached task

        Raises:
            EntityNotFoundError: task or action missing
        """
        task = self.get_task(task_id)
        action = task.find_planned_action(action_id)
        if action is None:
            raise EntityNotFoundError(f"Planned action not found: {action_id} (task {task_id})")
        return action

    def record_fact_action(self, fact: dm.FactRecord) -> dm.Task:
        """
        Append a fact record to its task and update the planned action's completion.

        Returns:
            The updated task
        """
        task = self.get_task(fact.task_id)
        task.fact_actions.append(fact)

        action = task.find_planned_action(fact.planned_action_id)
        if action is None:
            logger.warning(f"Fact {fact.id} references unknown planned action {fact.planned_action_id}")
        else:
            action.completed = action.is_action_completed(task.fact_actions)
            logger.info(
                f"Recorded fact {fact.id} on task {task.id}: "
                f"action {action.id} completed={action.completed}"
            )

        task.last_modified_at = datetime.now()
        return task

    def buffer_for(self, task_id: str) -> TaskBuffer:
        """The task buffer of a cached task, created on first use."""
        self.get_task(task_id)
        if task_id not in self._buffers:
            self._buffers[task_id] = TaskBuffer(task_id)
        return self._buffers[task_id]

    def clear_buffer(self, task_id: str) -> None:
        buffer = self._buffers.pop(task_id, None)
        if buffer is not None:
            logger.info(f"Cleared task buffer of {task_id} ({len(buffer)} objects)")

    def open_session(self, task_id: str, endpoint: Optional[str] = None) -> 'TaskSession':
        task = self.get_task(task_id)
        return TaskSession(self, task.id, endpoint or task.endpoint)


class TaskSession:
    """
    Handle on one task for the lifetime of one wizard.

    Created when the wizard starts, closed when it finishes or is cancelled.
    A closed session refuses further reads and writes.
    """

    def __init__(self, cache: TaskCache, task_id: str, endpoint: Optional[str] = None):
        self.cache = cache
        self.task_id = task_id
        self.endpoint = endpoint
        self.is_open = True

    def _check_open(self) -> None:
        if not self.is_open:
            raise RuntimeError(f"Task session for {self.task_id} is closed")

    @property
    def task(self) -> dm.Task:
        self._check_open()
        return self.cache.get_task(self.task_id)

    def get_planned_action(self, action_id: str) -> dm.PlannedAction:
        self._check_open()
        return self.cache.get_planned_action(self.task_id, action_id)

    @property
    def buffer(self) -> TaskBuffer:
        self._check_open()
        return self.cache.buffer_for(self.task_id)

    def record_fact_action(self, fact: dm.FactRecord) -> dm.Task:
        self._check_open()
        return self.cache.record_fact_action(fact)

    def close(self) -> None:
        if self.is_open:
            logger.debug(f"Closing task session {self.task_id}")
        self.is_open = False
