"""
Test — Runner Crash (Guardrail)

Cenário: o runner levanta uma exceção inesperada (ex.: executável ausente)
em vez de reportar um status de saída.
Esperado:
- a tarefa falha com error.type = "ENGINE_EXECUTION_ERROR"
- tipo e mensagem da exceção original são preservados no payload
- nenhum exit_code é inventado
"""

from __future__ import annotations

from flowmake.core.config.settings import EngineSettings
from flowmake.core.engine.engine import Engine
from flowmake.core.tasks.types import TaskStatus

from tests.errors._snapshot_helpers import assert_error_snapshot


def test_runner_crash(stable_ctx, CmdTask, registry_of, FakeRunner) -> None:
    registry = registry_of(CmdTask("build-backend"))
    runner = FakeRunner(
        raise_for={"build-backend": FileNotFoundError("No such file or directory: 'cargo'")}
    )

    rr = Engine(registry, settings=EngineSettings(concurrency=1), runner=runner).run(
        "build-backend", stable_ctx
    )

    result = rr.results["build-backend"]
    assert result.status == TaskStatus.FAILED
    assert result.exit_code is None

    assert_error_snapshot("engine_execution_error.json", result.error)
