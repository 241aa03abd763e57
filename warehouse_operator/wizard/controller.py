"""
Wizard Controller - Walks the operator through one planned action.

Uses a `transitions` state machine for the lifecycle:
uninitialized → active → completed → submitting → submitted | submit_failed → closed.
While active, `index` points at the step being resolved; `completed` holds
exactly when `index == len(steps)`.

Values are recorded per step. The result (the accumulator) is rebuilt by
merging the recorded values of steps [0, index) in order, so going back
and dropping a step's value can never leave a stale field behind.

Every supplied, scanned or performed value must also pass StepValidator
before the wizard moves past its step.

Pallets, bins and products of a submitted action go into the task buffer.
When a later wizard on the same task reaches a matching step, the buffered
object is pre-recorded and the operator confirms it with advance().

Usage:
    wizard = WizardController(cache, submitter=backend, operations=backend,
                              products=product_lookup(catalogue))
    wizard.initialize("t-1", "pa-1")
    await wizard.handle_scan("4600000000017")    # item
    wizard.supply(3.0)                           # quantity
    result = await wizard.submit()
    if not result.success:
        await wizard.retry()
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set
import logging
import time

from transitions import Machine
from transitions.core import MachineError

import warehouse_operator.core.models.domain as dm
from warehouse_operator.adapters.base import ObjectLookup, RemoteSubmitter, SubmitResult, WarehouseOperations
from warehouse_operator.config.wizard_config_loader import WizardConfig
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.core.validation.validators import StepValidator
from warehouse_operator.repositories.base import EntityNotFoundError
from warehouse_operator.repositories.task_cache import TaskCache, TaskSession
from warehouse_operator.resolvers.base import SKIPPED, ResolverContext, StepOutcome
from warehouse_operator.resolvers.registry import ResolverRegistry, build_registry
from warehouse_operator.wizard.errors import InvalidWizardOperation, WizardError, WizardNotFoundError
from warehouse_operator.wizard.messages import WizardSignal
from warehouse_operator.wizard.sequencer import WizardStep, build_steps
from warehouse_operator.wizard.states import REVIEW_STATES, STEP_STATES, TRANSITIONS, WizardStates
from warehouse_operator.wizard.summary import render_summary

logger = logging.getLogger(__name__)


class WizardController:
    """
    Single owner of one wizard's state. All mutation goes through its methods.

    Human pause points:
        - COMPLETED: summary shown, waiting for submit
        - SUBMIT_FAILED: error shown, waiting for retry or cancel
    """

    def __init__(
        self,
        cache: TaskCache,
        submitter: RemoteSubmitter,
        operations: Optional[WarehouseOperations] = None,
        products: Optional[ObjectLookup[dm.Product]] = None,
        containers: Optional[ObjectLookup[dm.Container]] = None,
        locations: Optional[ObjectLookup[dm.Location]] = None,
        config: Optional[WizardConfig] = None,
        default_endpoint: Optional[str] = None,
        on_signal: Optional[Callable[[WizardSignal], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cache = cache
        self.submitter = submitter
        self.operations = operations
        self.products = products
        self.containers = containers
        self.locations = locations
        self.config = config or WizardConfig()
        self.default_endpoint = default_endpoint
        self.on_signal = on_signal
        self._clock = clock

        # Wizard state
        self.task_id: Optional[str] = None
        self.action: Optional[dm.PlannedAction] = None
        self.session: Optional[TaskSession] = None
        self.endpoint: Optional[str] = None
        self.registry: Optional[ResolverRegistry] = None
        self.steps: List[WizardStep] = []
        self.index = 0
        self.step_values: Dict[str, Any] = {}
        self.autofilled: Set[str] = set()
        self.result = WizardResult()
        self.messages: Dict[str, str] = {}
        self.sending = False
        self.last_error: Optional[str] = None
        self.last_scanned_code: Optional[str] = None
        self.pending_fact: Optional[dm.FactRecord] = None
        self.started_at: Optional[datetime] = None
        self.signals: List[WizardSignal] = []

        self._alive = True
        self._last_scan_at: Optional[float] = None

        # State machine - states are string values from WizardStates
        self.machine = Machine(
            model=self,
            states=[s.value for s in WizardStates],
            transitions=self._prepare_transitions(),
            initial=WizardStates.UNINITIALIZED.value,
            send_event=True,
            auto_transitions=False,
        )

    def _prepare_transitions(self) -> list:
        """Convert WizardStates enum values in transitions to strings."""
        prepared = []
        for t in TRANSITIONS:
            entry = dict(t)
            src = entry['source']
            if isinstance(src, WizardStates):
                entry['source'] = src.value
            elif isinstance(src, list):
                entry['source'] = [s.value if isinstance(s, WizardStates) else s for s in src]
            dst = entry['dest']
            if isinstance(dst, WizardStates):
                entry['dest'] = dst.value
            prepared.append(entry)
        return prepared

    # -----------------------------------------------------------------
    # Derived state
    # -----------------------------------------------------------------

    @property
    def completed(self) -> bool:
        return bool(self.steps) and self.index == len(self.steps)

    @property
    def current_step(self) -> Optional[WizardStep]:
        if self.index < len(self.steps):
            return self.steps[self.index]
        return None

    @property
    def current_message(self) -> Optional[str]:
        step = self.current_step
        return self.messages.get(step.id) if step else None

    def snapshot(self) -> WizardResult:
        """Resolved result plus the current step's recorded, not yet confirmed value."""
        step = self.current_step
        if step is None or step.id not in self.step_values:
            return self.result
        return self._merge(self.result, step)

    def summary(self) -> str:
        return render_summary(self.steps, self.step_values, self.result)

    # -----------------------------------------------------------------
    # Conditions (called by transitions library)
    # -----------------------------------------------------------------

    def has_steps(self, event) -> bool:
        return len(self.steps) > 0

    def is_at_end(self, event) -> bool:
        return self.index == len(self.steps)

    # -----------------------------------------------------------------
    # State callbacks (called by transitions library on state entry)
    # -----------------------------------------------------------------

    def on_enter_active(self, event):
        self._log_position()

    def _log_position(self):
        step = self.current_step
        logger.info(
            f"Wizard {self._label()} at step {self.index + 1}/{len(self.steps)}: "
            f"{step.kind.value if step else '-'}"
        )

    def on_enter_completed(self, event):
        logger.info(f"Wizard {self._label()}: all {len(self.steps)} steps resolved, awaiting submit")

    def on_enter_submitting(self, event):
        logger.info(f"Wizard {self._label()}: submitting fact {self.pending_fact.id} to {self.endpoint}")

    def on_enter_submit_failed(self, event):
        logger.error(f"Wizard {self._label()}: submission failed: {self.last_error}")

    def on_enter_closed(self, event):
        logger.info(f"Wizard {self._label()} closed")

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def initialize(self, task_id: str, action_id: str) -> None:
        """
        Load the planned action and build the steps.

        Raises:
            WizardNotFoundError: task or action not in the cache (abort signalled)
            WizardError: the action's template has no steps (abort signalled)
        """
        if self.state != WizardStates.UNINITIALIZED.value:
            raise InvalidWizardOperation(f"Wizard already initialized (state: {self.state})")

        self.task_id = task_id
        try:
            self.session = self.cache.open_session(task_id)
            self.action = self.session.get_planned_action(action_id)
        except EntityNotFoundError as e:
            logger.error(f"Cannot start wizard for {task_id}/{action_id}: {e}")
            self._abort(str(e))
            raise WizardNotFoundError(str(e)) from e

        self.endpoint = self.session.endpoint or self.default_endpoint or self.config.submission.endpoint
        self.steps = build_steps(self.action.template)
        self.registry = build_registry(ResolverContext(
            action=self.action,
            products=self.products,
            containers=self.containers,
            locations=self.locations,
            operations=self.operations,
            config=self.config,
        ))
        self.index = 0
        self.started_at = datetime.now()

        if not self._fire('begin'):
            message = f"Action {action_id} has no steps"
            logger.error(f"Cannot start wizard for {task_id}/{action_id}: {message}")
            self._abort(message)
            raise WizardError(message)
        self._autofill()

    def supply(self, value: Any) -> bool:
        """
        Resolve the current step with `value` and move forward, or go back one step on None.

        Going back drops the value of the step being left; earlier values stay.

        Returns:
            True if the wizard moved, False if the value was rejected (message recorded)
        """
        if value is None:
            return self._go_back()

        step = self._require_active_step('supply')
        outcome = self.registry.get(step.kind).accept_value(step, value, self.result)
        if not outcome.success:
            self._reject(step, outcome.error)
            return False

        return self._resolve(step, outcome.value)

    def record(self, value: Any) -> bool:
        """Record a value for the current step without moving (confirmed later by advance())."""
        step = self._require_active_step('record')
        outcome = self.registry.get(step.kind).accept_value(step, value, self.result)
        if not outcome.success:
            self._reject(step, outcome.error)
            return False

        self.step_values[step.id] = outcome.value
        self.messages.pop(step.id, None)
        self.autofilled.discard(step.id)
        return True

    def advance(self) -> bool:
        """Move past the current step on its already recorded value, if the validator accepts it."""
        step = self._require_active_step('advance')
        if step.id not in self.step_values:
            self._reject(step, "Nothing to confirm for this step yet")
            return False

        is_valid, errors = StepValidator.validate(step, self.snapshot())
        if not is_valid:
            self._reject(step, "; ".join(errors))
            return False

        self._move_forward(step)
        return True

    def skip(self) -> bool:
        """Move past an optional step without a value."""
        step = self._require_active_step('skip')
        skippable = not step.step.required or (
            step.kind == dm.ObjectKind.EXPIRATION_DATE and StepValidator.accepts(step, self.result)
        )
        if not skippable:
            self._reject(step, "This step cannot be skipped")
            return False

        self.step_values[step.id] = SKIPPED
        self._move_forward(step)
        return True

    async def handle_scan(self, code: str) -> Optional[StepOutcome]:
        """
        Dispatch a decoded barcode to the active step's resolver.

        Returns None when the scan was ignored (not active, debounced, stale).
        """
        if self.state not in STEP_STATES:
            logger.debug(f"Scan {code!r} ignored in state {self.state}")
            return None

        code = (code or "").strip()
        if not code:
            return None

        now = self._clock()
        if (code == self.last_scanned_code and self._last_scan_at is not None
                and now - self._last_scan_at < self.config.scan.debounce_seconds):
            logger.debug(f"Scan {code!r} debounced")
            return None
        self.last_scanned_code = code
        self._last_scan_at = now

        step, position = self.current_step, self.index
        outcome = await self.registry.get(step.kind).resolve_scan(step, code, self.result)

        if not self._is_current(step, position):
            logger.debug(f"Dropping stale scan result for step {step.id}")
            return None
        self._apply(step, outcome)
        return outcome

    async def search(self, query: str) -> List[Any]:
        """Manual search for the current step's candidates (pass one to supply())."""
        step, position = self._require_active_step('search'), self.index
        candidates = await self.registry.get(step.kind).search(step, query, self.result)
        if not self._is_current(step, position):
            logger.debug(f"Dropping stale search result for step {step.id}")
            return []
        return candidates

    async def perform_step_action(self) -> Optional[StepOutcome]:
        """Run the current step's remote side effect (create / close / print)."""
        step, position = self._require_active_step('perform_step_action'), self.index
        outcome = await self.registry.get(step.kind).perform(step, self.result)
        if not self._is_current(step, position):
            logger.debug(f"Dropping stale action result for step {step.id}")
            return None
        self._apply(step, outcome)
        return outcome

    async def submit(self) -> SubmitResult:
        """
        Build the fact record and send it. Only once every step is resolved.

        The record is built once; retry() sends the very same record.
        """
        if self.state not in REVIEW_STATES or not self.completed:
            raise InvalidWizardOperation(f"Cannot submit in state {self.state}")
        if self.pending_fact is None:
            self.pending_fact = self._build_fact()
        return await self._send(self.pending_fact)

    async def retry(self) -> SubmitResult:
        """Resend the identical fact record after a failed submission. No de-duplication."""
        if self.state != WizardStates.SUBMIT_FAILED.value or self.pending_fact is None:
            raise InvalidWizardOperation(f"Nothing to retry in state {self.state}")
        logger.info(f"Wizard {self._label()}: retrying fact {self.pending_fact.id}")
        return await self._send(self.pending_fact)

    def cancel(self) -> None:
        """Discard the wizard. Never calls the submitter or the task cache."""
        if self.state == WizardStates.CLOSED.value:
            return
        logger.info(f"Wizard {self._label()} cancelled at step {self.index}/{len(self.steps)}")
        self._alive = False
        self.step_values.clear()
        self.autofilled.clear()
        self.messages.clear()
        self.result = WizardResult()
        self.pending_fact = None
        self.sending = False
        if self.session is not None:
            self.session.close()
        self._fire('abandon')

    # -----------------------------------------------------------------
    # Navigation
    # -----------------------------------------------------------------

    def _resolve(self, step: WizardStep, value: Any) -> bool:
        """Record an accepted value and move on, unless the validator refuses the result."""
        previous = self.step_values.get(step.id)
        self.step_values[step.id] = value

        is_valid, errors = StepValidator.validate(step, self._merge(self.result, step))
        if not is_valid:
            if previous is None:
                self.step_values.pop(step.id, None)
            else:
                self.step_values[step.id] = previous
            self._reject(step, "; ".join(errors))
            return False

        self.autofilled.discard(step.id)
        self._move_forward(step)
        return True

    def _move_forward(self, step: WizardStep) -> None:
        self.messages.pop(step.id, None)
        self.index += 1
        self._rebuild()
        logger.debug(f"Step {step.id} resolved: {self.step_values.get(step.id)!r}")
        if self.completed:
            self._fire('steps_exhausted')
        else:
            self._log_position()
            self._autofill()

    def _go_back(self) -> bool:
        if self.state in REVIEW_STATES:
            # Back from the summary: the last step keeps its value
            self.index = len(self.steps) - 1
            self.pending_fact = None
            self.last_error = None
            self._rebuild()
            self._fire('step_back')
            return True

        if self.state != WizardStates.ACTIVE.value:
            raise InvalidWizardOperation(f"Cannot go back in state {self.state}")
        if self.index == 0:
            logger.debug("Already at the first step")
            return False

        for step in self.steps[self.index:]:
            self.step_values.pop(step.id, None)
            self.messages.pop(step.id, None)
            self.autofilled.discard(step.id)
        self.index -= 1
        self._rebuild()
        self._log_position()
        return True

    def _autofill(self) -> None:
        """Pre-record the task buffer's object for the current step; advance() confirms it."""
        step = self.current_step
        if step is None or step.id in self.step_values or not self._is_buffered_kind(step):
            return
        buffered = self.session.buffer.get(step.kind, step.target)
        if buffered is None:
            return

        outcome = self.registry.get(step.kind).accept_value(step, buffered.value, self.result)
        if not outcome.success:
            logger.debug(f"Buffered {step.kind.value} from {buffered.source} not usable: {outcome.error}")
            return
        self.step_values[step.id] = outcome.value
        self.autofilled.add(step.id)
        logger.info(f"Step {step.id} pre-filled from task buffer ({buffered.source})")

    def _save_to_buffer(self) -> None:
        for step in self.steps:
            value = self.step_values.get(step.id)
            if value is None or value is SKIPPED or not self._is_buffered_kind(step):
                continue
            if isinstance(value, dm.TaskProduct):
                value = value.product
            self.session.buffer.put(step.kind, step.target, value, source=f"{self.action.id}/{step.id}")

    def _is_buffered_kind(self, step: WizardStep) -> bool:
        return self.config.buffer.enabled and step.kind in self.config.buffer.object_kinds

    def _rebuild(self) -> None:
        result = WizardResult()
        for step in self.steps[:self.index]:
            result = self._merge(result, step)
        self.result = result

    def _merge(self, result: WizardResult, step: WizardStep) -> WizardResult:
        value = self.step_values.get(step.id)
        if value is None or value is SKIPPED:
            return result
        return self.registry.get(step.kind).merge(result, value, step)

    def _apply(self, step: WizardStep, outcome: StepOutcome) -> None:
        if outcome.ignored:
            return
        if outcome.success:
            self._resolve(step, outcome.value)
        else:
            self._reject(step, outcome.error)

    # -----------------------------------------------------------------
    # Submission
    # -----------------------------------------------------------------

    def _build_fact(self) -> dm.FactRecord:
        return dm.FactRecord(
            task_id=self.task_id,
            planned_action_id=self.action.id,
            item=self.result.item,
            source_container=self.result.source_container,
            destination_container=self.result.destination_container,
            destination_location=self.result.destination_location,
            action_template_id=self.action.template.id,
            wms_operation=self.action.operation,
            started_at=self.started_at,
            completed_at=datetime.now(),
            extras=dict(self.result.extras),
        )

    async def _send(self, fact: dm.FactRecord) -> SubmitResult:
        self.sending = True
        self.last_error = None
        self._fire('send')

        try:
            result = await self.submitter.submit_fact_action(self.task_id, fact, self.endpoint)
        except Exception as e:
            logger.error(f"Submitter raised for fact {fact.id}: {e}")
            result = SubmitResult.error(0, str(e))

        if not self._alive:
            logger.debug(f"Dropping submission result for fact {fact.id}: wizard cancelled")
            return result

        self.sending = False
        if result.success:
            self.session.record_fact_action(fact)
            self._save_to_buffer()
            self._fire('send_succeeded')
            self._emit(WizardSignal.completed_successfully(self.action.id))
            self._alive = False
            self.session.close()
            self._fire('finish')
        else:
            self.last_error = result.message
            self._fire('send_failed')
            self._emit(WizardSignal.user_message(result.message))
        return result

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _require_active_step(self, operation: str) -> WizardStep:
        if self.state not in STEP_STATES or self.current_step is None:
            raise InvalidWizardOperation(f"{operation}() not allowed in state {self.state}")
        return self.current_step

    def _is_current(self, step: WizardStep, position: int) -> bool:
        return (
            self._alive
            and self.state == WizardStates.ACTIVE.value
            and self.index == position
            and self.current_step is step
        )

    def _reject(self, step: WizardStep, message: str) -> None:
        logger.warning(f"Step {step.id} ({step.kind.value}): {message}")
        self.messages[step.id] = message
        self._emit(WizardSignal.user_message(message))

    def _abort(self, message: str) -> None:
        self._alive = False
        if self.session is not None:
            self.session.close()
        self._emit(WizardSignal.abort(message))
        self._fire('abandon')

    def _fire(self, trigger: str) -> bool:
        """Run a state machine trigger; illegal moves become InvalidWizardOperation."""
        try:
            return getattr(self, trigger)()
        except MachineError as e:
            raise InvalidWizardOperation(f"{trigger} not allowed in state {self.state}") from e

    def _emit(self, signal: WizardSignal) -> None:
        self.signals.append(signal)
        if self.on_signal is not None:
            self.on_signal(signal)

    def _label(self) -> str:
        action_id = self.action.id if self.action else '-'
        return f"{self.task_id}/{action_id}"
