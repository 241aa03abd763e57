"""
CLI: Run an action wizard from a task YAML file
================================================

Usage:
    python -m warehouse_operator.cli.run_wizard --file task.yaml
    python -m warehouse_operator.cli.run_wizard --file task.yaml --action pa-2
    python -m warehouse_operator.cli.run_wizard --file task.yaml --fail-submissions 1 --retries 1
    python -m warehouse_operator.cli.run_wizard --file task.yaml --dry-run

Template:
    See warehouse_operator/config/task_template.yaml

The task, its catalogue and the operator's inputs all come from the file.
Containers, labels and submissions go to the in-memory mock backend.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

import warehouse_operator.core.models.domain as dm
from warehouse_operator.adapters.mock_adapter import (
    MockWarehouseBackend, container_lookup, location_lookup, product_lookup,
)
from warehouse_operator.config.settings import LOG_LEVELS, get_settings, setup_logging
from warehouse_operator.config.wizard_config_loader import load_wizard_config
from warehouse_operator.repositories.task_cache import TaskCache
from warehouse_operator.wizard.controller import WizardController
from warehouse_operator.wizard.messages import SignalKind, WizardSignal
from warehouse_operator.wizard.summary import format_value


def load_task_file(filepath: str) -> Dict[str, Any]:
    """Load and validate a task YAML file."""
    path = Path(filepath)
    if not path.exists():
        print(f"ERROR: File not found: {filepath}")
        sys.exit(1)

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    required = ['task', 'actions']
    for field in required:
        if field not in data:
            print(f"ERROR: Missing required field: {field}")
            sys.exit(1)

    if not data['actions']:
        print("ERROR: At least one action is required")
        sys.exit(1)

    return data


# ============================================================================
# YAML → domain
# ============================================================================

def parse_products(raw: List[Dict[str, Any]]) -> Dict[str, dm.Product]:
    products = {}
    for p in raw or []:
        product = dm.Product(
            id=str(p['id']),
            name=p.get('name', str(p['id'])),
            barcode=str(p.get('barcode', '')),
            article_number=str(p.get('article_number', '')),
            accounting_model=dm.AccountingModel(p.get('accounting_model', 'qty')),
        )
        products[product.id] = product
    return products


def parse_containers(raw: List[Dict[str, Any]]) -> Dict[str, dm.Container]:
    return {
        str(c['code']): dm.Container(code=str(c['code']), zone=c.get('zone', ''),
                                     is_closed=c.get('is_closed', False))
        for c in raw or []
    }


def parse_locations(raw: List[Dict[str, Any]]) -> Dict[str, dm.Location]:
    return {str(b['code']): dm.Location(code=str(b['code']), zone=b.get('zone', '')) for b in raw or []}


def parse_step(raw: Dict[str, Any], position: int) -> dm.ActionStep:
    target = raw.get('target')
    return dm.ActionStep(
        id=str(raw.get('id', f"step-{position}")),
        object_kind=dm.ObjectKind(raw['object_kind']),
        prompt=raw.get('prompt', ''),
        selection_condition=dm.SelectionCondition(raw.get('selection_condition', 'any')),
        params=raw.get('params', {}) or {},
        order=int(raw.get('order', position)),
        target=dm.TargetField(target) if target else None,
        required=raw.get('required', True),
    )


def parse_template(raw: Dict[str, Any]) -> dm.ActionTemplate:
    return dm.ActionTemplate(
        id=str(raw['id']),
        name=raw.get('name', ''),
        wms_operation=dm.WmsOperation(raw.get('wms_operation', 'put')),
        storage_steps=[parse_step(s, i) for i, s in enumerate(raw.get('storage_steps', []) or [])],
        placement_steps=[parse_step(s, i) for i, s in enumerate(raw.get('placement_steps', []) or [])],
        completion_condition=dm.CompletionCondition(raw.get('completion_condition', 'on_fact')),
    )


def build_task(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the task and its catalogue from the loaded file.

    Returns:
        dict with 'task', 'products', 'containers', 'locations'
    """
    catalogue = data.get('catalogue', {}) or {}
    products = parse_products(catalogue.get('products'))
    containers = parse_containers(catalogue.get('containers'))
    locations = parse_locations(catalogue.get('locations'))

    task_raw = data['task']
    task = dm.Task(
        id=str(task_raw['id']),
        name=task_raw.get('name', ''),
        barcode=str(task_raw.get('barcode', '')),
        endpoint=task_raw.get('endpoint'),
    )

    for order, a in enumerate(data['actions']):
        item = None
        if a.get('item'):
            product = products[str(a['item']['product_id'])]
            item = dm.TaskProduct(product=product, quantity=float(a['item'].get('quantity', 0)))
        task.planned_actions.append(dm.PlannedAction(
            id=str(a['id']),
            task_id=task.id,
            template=parse_template(a['template']),
            wms_operation=dm.WmsOperation(a['wms_operation']) if a.get('wms_operation') else None,
            order=order,
            item=item,
            quantity=float(a['item'].get('quantity', 0)) if a.get('item') else 0.0,
            source_container=containers.get(a.get('source_container')),
            destination_container=containers.get(a.get('destination_container')),
            destination_location=locations.get(a.get('destination_location')),
        ))

    return {
        'task': task,
        'products': list(products.values()),
        'containers': list(containers.values()),
        'locations': list(locations.values()),
    }


# ============================================================================
# Driving the wizard
# ============================================================================

async def apply_input(wizard: WizardController, entry: Dict[str, Any]) -> None:
    """Feed one scripted operator input to the wizard."""
    if 'scan' in entry:
        await wizard.handle_scan(str(entry['scan']))
    elif 'search' in entry:
        candidates = await wizard.search(str(entry['search']))
        if candidates:
            wizard.supply(candidates[0])
        else:
            print(f"  search {entry['search']!r}: nothing found")
    elif 'supply' in entry:
        wizard.supply(entry['supply'])
    elif entry.get('action'):
        await wizard.perform_step_action()
    elif entry.get('skip'):
        wizard.skip()
    elif entry.get('back'):
        wizard.supply(None)
    else:
        print(f"  unknown input ignored: {entry}")


async def run(data: Dict[str, Any], args: argparse.Namespace) -> int:
    settings = get_settings()
    config = load_wizard_config(args.config or settings.wizard_config_path)
    built = build_task(data)
    task: dm.Task = built['task']

    backend = MockWarehouseBackend()
    if args.fail_submissions:
        backend.fail_next_submission(503, "Task server unavailable", times=args.fail_submissions)

    def on_signal(signal: WizardSignal) -> None:
        if signal.kind == SignalKind.USER_MESSAGE:
            print(f"  ! {signal.message}")
        elif signal.kind == SignalKind.ABORT:
            print(f"  ABORT: {signal.message}")
        else:
            print(f"  Action {signal.action_id} completed")

    wizard = WizardController(
        TaskCache([task]),
        submitter=backend,
        operations=backend,
        products=product_lookup(built['products']),
        containers=container_lookup(built['containers']),
        locations=location_lookup(built['locations']),
        config=config,
        default_endpoint=settings.default_endpoint,
        on_signal=on_signal,
        clock=_InputClock(config.scan.debounce_seconds),
    )

    action_id = args.action or task.planned_actions[0].id
    wizard.initialize(task.id, action_id)

    for entry in data.get('inputs', []) or []:
        if wizard.completed:
            break
        step = wizard.current_step
        print(f"  [{wizard.index + 1}/{len(wizard.steps)}] {step.prompt or step.kind.value}: {entry}")
        await apply_input(wizard, entry)

    if not wizard.completed:
        step = wizard.current_step
        print(f"\nINCOMPLETE: stopped at step {wizard.index + 1} ({step.kind.value})")
        wizard.cancel()
        return 1

    print()
    print(wizard.summary())
    print()

    if args.dry_run:
        print("DRY RUN - fact not submitted")
        wizard.cancel()
        return 0

    result = await wizard.submit()
    attempts = 0
    while not result.success and attempts < args.retries:
        attempts += 1
        print(f"  retry {attempts}/{args.retries} after: {result.message}")
        result = await wizard.retry()

    if not result.success:
        print(f"\nFAILED: {result.code} {result.message}")
        wizard.cancel()
        return 1

    fact = task.fact_actions[-1]
    print(f"\nSUBMITTED fact {fact.id} ({len(backend.submissions)} attempt(s))")
    for key, value in fact.to_dict().items():
        print(f"  {key}: {format_value(value)}")
    return 0


class _InputClock:
    """Each scripted input is one debounce window apart, so repeated codes in the file are honoured."""

    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Run an action wizard from a task YAML file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m warehouse_operator.cli.run_wizard --file task.yaml
  python -m warehouse_operator.cli.run_wizard --file task.yaml --fail-submissions 1 --retries 1

Template:
  See warehouse_operator/config/task_template.yaml
        """
    )

    parser.add_argument('--file', '-f', required=True, help='Path to task YAML file')
    parser.add_argument('--action', '-a', help='Planned action id (default: first action)')
    parser.add_argument('--config', help='Path to wizard_rules.yaml')
    parser.add_argument('--fail-submissions', type=int, default=0,
                        help='Make the mock task server reject the first N submissions')
    parser.add_argument('--retries', type=int, default=0, help='Manual retries after a failed submission')
    parser.add_argument('--dry-run', action='store_true', help='Walk the steps but do not submit')
    parser.add_argument('--log-level', type=str.upper, choices=LOG_LEVELS, default=None,
                        help='Override WMS_LOG_LEVEL')

    args = parser.parse_args(argv)

    settings = get_settings()
    if args.log_level:
        settings.log_level = args.log_level
    setup_logging(settings)

    data = load_task_file(args.file)

    print("=" * 60)
    print("  ACTION WIZARD")
    print("=" * 60)
    print(f"  File: {args.file}")
    print(f"  Task: {data['task'].get('id')} {data['task'].get('name', '')}")
    print(f"  Actions: {len(data['actions'])}")
    print()

    return asyncio.run(run(data, args))


if __name__ == "__main__":
    sys.exit(main())
