# tests/core/engine/test_executor_skip.py
"""
Testes de skip no Executor (condições, desabilitação e requires_success).

Os testes asseguram que:
- uma tarefa cuja condição não se aplica é SKIPPED e não executa
- um skip satisfaz os dependentes (skip não é falha)
- tarefas desabilitadas por declaração ou por configuração são puladas
- `requires_success` pula a tarefa se alguma dependência não teve sucesso

Limites explícitos:
    - Não valida a avaliação detalhada de condições (ver test_conditions)
"""

import pytest

try:
    from flowmake.core.config.settings import EngineSettings
    from flowmake.core.engine.executor import Executor
    from flowmake.core.engine.planner import plan_ready_sets
    from flowmake.core.tasks.types import Condition, RunOutcome, TaskStatus
except Exception as e:
    Executor = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing Executor. Implement:
- flowmake.core.engine.executor.Executor
Import error: {_IMPORT_ERR}
""")


def _run(registry, runner, ctx, flow, settings=None):
    settings = settings or EngineSettings(concurrency=1)
    return Executor(registry, runner=runner, settings=settings).run(
        plan_ready_sets(registry, [flow]), ctx
    )


def test_condition_skip_lets_dependent_proceed(CmdTask, registry_of, FakeRunner, stable_ctx, nightly_ctx):
    """
    Verifica o cenário canônico de tarefa restrita ao canal nightly.

    Em stable:
        - `bench` é SKIPPED com motivo de condição
        - `report`, que depende de `bench`, executa normalmente
        - o desfecho é SUCCESS
    Em nightly, ambas executam.
    """
    _require_imports()
    registry = registry_of(
        CmdTask("bench", condition=Condition(channels=("nightly",))),
        CmdTask("report", deps=["bench"]),
    )

    runner = FakeRunner()
    result = _run(registry, runner, stable_ctx, "report")

    assert result.outcome == RunOutcome.SUCCESS
    assert result.status_of("bench") == TaskStatus.SKIPPED
    assert result.results["bench"].summary.startswith("condition not met")
    assert result.status_of("report") == TaskStatus.SUCCEEDED
    assert runner.calls == ["report"]

    runner = FakeRunner()
    _run(registry, runner, nightly_ctx, "report")
    assert runner.calls == ["bench", "report"]


def test_declared_disabled_task_is_skipped(CmdTask, registry_of, FakeRunner, stable_ctx):
    _require_imports()
    registry = registry_of(CmdTask("a", disabled=True), CmdTask("b", deps=["a"]))
    runner = FakeRunner()

    result = _run(registry, runner, stable_ctx, "b")

    assert result.results["a"].summary == "disabled"
    assert runner.calls == ["b"]


def test_task_disabled_by_config_is_skipped(CmdTask, registry_of, FakeRunner, stable_ctx):
    _require_imports()
    registry = registry_of(CmdTask("lint"), CmdTask("build", deps=["lint"]))
    settings = EngineSettings(concurrency=1, disabled_tasks=frozenset({"lint"}))
    runner = FakeRunner(fail={"lint": 1})

    result = _run(registry, runner, stable_ctx, "build", settings=settings)

    assert result.outcome == RunOutcome.SUCCESS
    assert result.status_of("lint") == TaskStatus.SKIPPED
    assert result.results["lint"].summary == "disabled by config"
    assert runner.calls == ["build"]


def test_requires_success_skips_after_skipped_dependency(CmdTask, registry_of, FakeRunner, stable_ctx):
    _require_imports()
    registry = registry_of(
        CmdTask("bench", condition=Condition(channels=("nightly",))),
        CmdTask("publish-bench", deps=["bench"], requires_success=True),
    )
    runner = FakeRunner()

    result = _run(registry, runner, stable_ctx, "publish-bench")

    assert result.status_of("publish-bench") == TaskStatus.SKIPPED
    assert result.results["publish-bench"].summary == "dependency 'bench' did not succeed"
    assert runner.calls == []


def test_requires_success_skips_after_tolerated_failure(CmdTask, registry_of, FakeRunner, stable_ctx):
    _require_imports()
    registry = registry_of(
        CmdTask("coverage", continue_on_error=True),
        CmdTask("upload", deps=["coverage"], requires_success=True),
        CmdTask("summary", deps=["coverage"]),
    )
    runner = FakeRunner(fail={"coverage": 1})

    result = _run(registry, runner, stable_ctx, "upload")
    assert result.outcome == RunOutcome.FAILURE_TOLERATED
    assert result.status_of("upload") == TaskStatus.SKIPPED

    runner = FakeRunner(fail={"coverage": 1})
    result = _run(registry, runner, stable_ctx, "summary")
    assert result.status_of("summary") == TaskStatus.SUCCEEDED


def test_requires_success_with_repeated_dependency(CmdTask, registry_of, FakeRunner, stable_ctx):
    """Dependências repetidas são avaliadas uma vez, na ordem declarada, como no planner."""
    _require_imports()
    registry = registry_of(
        CmdTask("lint"),
        CmdTask("coverage", continue_on_error=True),
        CmdTask("upload", deps=["lint", "lint", "coverage", "lint"], requires_success=True),
        CmdTask("publish", deps=["lint", "lint"], requires_success=True),
    )

    runner = FakeRunner(fail={"coverage": 1})
    result = _run(registry, runner, stable_ctx, "upload")
    assert result.status_of("upload") == TaskStatus.SKIPPED
    assert result.results["upload"].summary == "dependency 'coverage' did not succeed"
    assert sorted(runner.calls) == ["coverage", "lint"]

    runner = FakeRunner()
    result = _run(registry, runner, stable_ctx, "publish")
    assert result.status_of("publish") == TaskStatus.SUCCEEDED
    assert runner.calls == ["lint", "publish"]


def test_skipped_flow_still_satisfies_dependents(CmdTask, FlowOf, registry_of, FakeRunner, stable_ctx):
    _require_imports()
    registry = registry_of(
        CmdTask("inner"),
        FlowOf("windows-flow", deps=["inner"], condition=Condition(platforms=("windows",))),
        CmdTask("final", deps=["windows-flow"]),
    )
    runner = FakeRunner()

    result = _run(registry, runner, stable_ctx, "final")

    # A condição de um flow não se propaga para suas dependências.
    assert runner.calls == ["inner", "final"]
    assert result.status_of("windows-flow") == TaskStatus.SKIPPED
