"""
Test — Task Failed (Guardrail)

Cenário: o comando de uma tarefa termina com status diferente de zero.
Esperado:
- TaskResult com status FAILED e exit_code do comando
- result.error segue o schema canônico (FlowmakeErrorPayload)
- dependentes não são despachados (fail-fast)
"""

from __future__ import annotations

from flowmake.core.config.settings import EngineSettings
from flowmake.core.engine.engine import Engine
from flowmake.core.tasks.types import RunOutcome, TaskStatus

from tests.errors._snapshot_helpers import assert_error_snapshot


def test_task_failed(stable_ctx, CmdTask, registry_of, FakeRunner) -> None:
    registry = registry_of(CmdTask("lint"), CmdTask("test", deps=["lint"]))
    runner = FakeRunner(fail={"lint": 2})

    rr = Engine(registry, settings=EngineSettings(concurrency=1), runner=runner).run("test", stable_ctx)

    assert rr.outcome == RunOutcome.FAILURE
    lint = rr.results["lint"]
    assert lint.status == TaskStatus.FAILED
    assert lint.exit_code == 2
    assert "test" in rr.not_dispatched

    assert_error_snapshot("task_failed.json", lint.error)
