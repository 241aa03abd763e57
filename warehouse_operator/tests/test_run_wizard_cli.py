"""
Tests for the task-file CLI: YAML parsing and a scripted end-to-end run.
"""

import argparse
import asyncio
from pathlib import Path

import pytest
import yaml

import warehouse_operator.core.models.domain as dm
from warehouse_operator.cli.run_wizard import build_task, main, run

TEMPLATE = Path(__file__).resolve().parent.parent / 'config' / 'task_template.yaml'


def load_template():
    with open(TEMPLATE, 'r') as f:
        return yaml.safe_load(f)


def cli_args(**overrides):
    defaults = dict(action=None, config=None, fail_submissions=0, retries=0, dry_run=False)
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


class TestBuildTask:

    def test_template_parses(self):
        built = build_task(load_template())
        task = built['task']
        action = task.planned_actions[0]

        assert task.id == 'T-1042'
        assert action.item.product.accounting_model == dm.AccountingModel.BATCH
        assert action.quantity == 12.0
        assert action.source_container.code == 'PAL000017'
        assert action.destination_location.code == 'A-01-02'
        assert action.template.completion_condition == dm.CompletionCondition.PLAN_ACHIEVED
        assert [s.object_kind for s in action.template.placement_steps] == [
            dm.ObjectKind.CONTAINER_CREATION,
            dm.ObjectKind.LABEL_PRINTING,
            dm.ObjectKind.LOCATION,
        ]
        assert action.template.placement_steps[2].params == {'zone': 'A'}


class TestRun:

    def test_scripted_run_submits(self, capsys):
        assert asyncio.run(run(load_template(), cli_args())) == 0
        out = capsys.readouterr().out
        assert 'SUBMITTED' in out
        assert 'PAL000001' in out

    def test_retry_after_failure(self, capsys):
        assert asyncio.run(run(load_template(), cli_args(fail_submissions=1, retries=1))) == 0
        assert '2 attempt(s)' in capsys.readouterr().out

    def test_failure_without_retry(self, capsys):
        assert asyncio.run(run(load_template(), cli_args(fail_submissions=1))) == 1
        assert 'FAILED: 503' in capsys.readouterr().out

    def test_dry_run(self, capsys):
        assert asyncio.run(run(load_template(), cli_args(dry_run=True))) == 0
        assert 'DRY RUN' in capsys.readouterr().out

    def test_incomplete_inputs(self, capsys):
        data = load_template()
        data['inputs'] = data['inputs'][:2]
        assert asyncio.run(run(data, cli_args())) == 1
        assert 'INCOMPLETE' in capsys.readouterr().out


class TestMain:

    def test_bad_log_level_rejected(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(['--file', str(TEMPLATE), '--log-level', 'bogus'])
        assert exc.value.code == 2
        assert 'invalid choice' in capsys.readouterr().err
