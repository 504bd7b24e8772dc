# src/flowmake/core/engine/executor.py
"""
Executor de ready sets.

O Executor percorre os ready sets produzidos pelo planner, em sequência,
despachando as tarefas de cada set para um pool limitado de workers.

Para cada tarefa:
    1. desabilitada (declaração ou settings) → SKIPPED
    2. condição não satisfeita no ExecutionContext → SKIPPED
    3. `requires_success` com dependência que não teve sucesso → SKIPPED
    4. FlowTask → SUCCEEDED (não há comando)
    5. CommandTask → runner; status de saída != 0 → FAILED

Política de erro:
    - Tolerância por tarefa (`continue_on_error`), com override em nível de run:
      a falha tolerada satisfaz os dependentes e rebaixa o resultado para
      FAILURE_TOLERATED
    - Falha não tolerada: tarefas ainda enfileiradas do mesmo set são
      canceladas, tarefas em andamento terminam normalmente e nenhum set
      posterior é despachado; o resultado é FAILURE

Invariantes:
    - Um set só é despachado depois que todas as tarefas dos sets
      anteriores atingiram um estado terminal
    - Cada entrada do mapa de resultados é escrita exatamente uma vez
    - Registry e ExecutionContext nunca são mutados

Limites explícitos:
    - Não planeja (recebe ready sets prontos)
    - Não interpreta comandos
    - Não implementa fail-fast entre runs (ver `matrix`)
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from flowmake.core.config.settings import EngineSettings
from flowmake.core.context import ExecutionContext
from flowmake.core.errors import FlowmakeErrorPayload, engine_execution_error, task_failed
from flowmake.core.exceptions import TaskFailed
from flowmake.core.tasks.conditions import explain
from flowmake.core.tasks.registry import TaskRegistry
from flowmake.core.tasks.types import (
    CommandTask,
    RunOutcome,
    Task,
    TaskResult,
    TaskStatus,
)
from flowmake.core.traceability.manifest import (
    RunManifest,
    task_cancelled,
    task_finished,
    task_started,
)

from .runner import CommandRunner


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma run."""

    outcome: RunOutcome
    results: Dict[str, TaskResult] = field(default_factory=dict)
    ready_sets: Tuple[FrozenSet[str], ...] = ()
    not_dispatched: Tuple[str, ...] = ()
    run_id: str = ""
    manifest: Optional[RunManifest] = None

    def status_of(self, name: str) -> Optional[TaskStatus]:
        result = self.results.get(name)
        return result.status if result is not None else None

    def names_with(self, status: TaskStatus) -> List[str]:
        return sorted(n for n, r in self.results.items() if r.status == status)


def aggregate_outcome(results: Sequence[TaskResult]) -> RunOutcome:
    failed = [r for r in results if r.status == TaskStatus.FAILED]
    if any(not r.tolerated for r in failed):
        return RunOutcome.FAILURE
    if failed:
        return RunOutcome.FAILURE_TOLERATED
    return RunOutcome.SUCCESS


class _RunState:
    """Estado mutável de uma única run; nunca compartilhado entre runs."""

    def __init__(self, manifest: Optional[RunManifest]):
        self.results: Dict[str, TaskResult] = {}
        self.manifest = manifest
        self.lock = threading.Lock()

    def started(self, task: Task) -> None:
        if self.manifest is None:
            return
        with self.lock:
            task_started(self.manifest, task=task.name, kind=task.kind)

    def record(self, result: TaskResult) -> None:
        with self.lock:
            if result.name in self.results:
                raise RuntimeError(f"Result for task '{result.name}' written twice")
            self.results[result.name] = result
            if self.manifest is not None:
                task_finished(
                    self.manifest,
                    task=result.name,
                    result={
                        "status": result.status.value,
                        "summary": result.summary,
                        "exit_code": result.exit_code,
                        "tolerated": result.tolerated,
                        "error": result.error,
                    },
                )

    def cancelled(self, names: Sequence[str]) -> None:
        if self.manifest is None:
            return
        with self.lock:
            for name in names:
                task_cancelled(self.manifest, task=name)


class Executor:
    """Executa ready sets com um pool limitado e política de erro explícita."""

    def __init__(
        self,
        registry: TaskRegistry,
        *,
        runner: CommandRunner,
        settings: Optional[EngineSettings] = None,
    ):
        self.registry = registry
        self.runner = runner
        self.settings = settings or EngineSettings()

    def _tolerates(self, task: Task, override: Optional[bool]) -> bool:
        if override is not None:
            return override
        if self.settings.continue_on_error is not None:
            return self.settings.continue_on_error
        return task.continue_on_error

    def _skip_reason(
        self, task: Task, state: _RunState, context: ExecutionContext
    ) -> Optional[str]:
        if task.disabled:
            return "disabled"
        if not self.settings.is_enabled(task.name):
            return "disabled by config"

        unmet = explain(task, context)
        if unmet is not None:
            return f"condition not met: {unmet}"

        if task.requires_success:
            for dep in dict.fromkeys(task.dependencies):
                dep_result = state.results.get(dep)
                if dep_result is None or dep_result.status != TaskStatus.SUCCEEDED:
                    return f"dependency '{dep}' did not succeed"
        return None

    def _failure(
        self, task: Task, error: FlowmakeErrorPayload, exit_code: Optional[int], tolerated: bool, started: float
    ) -> TaskResult:
        return TaskResult(
            name=task.name,
            status=TaskStatus.FAILED,
            summary=error.message,
            exit_code=exit_code,
            tolerated=tolerated,
            duration_ms=int((time.monotonic() - started) * 1000),
            error=error.to_dict(),
        )

    def _execute(
        self,
        name: str,
        state: _RunState,
        context: ExecutionContext,
        override: Optional[bool],
    ) -> TaskResult:
        task = self.registry.lookup(name)

        reason = self._skip_reason(task, state, context)
        if reason is not None:
            result = TaskResult(name=name, status=TaskStatus.SKIPPED, summary=reason)
            state.record(result)
            return result

        state.started(task)
        started = time.monotonic()

        if not isinstance(task, CommandTask):
            result = TaskResult(name=name, status=TaskStatus.SUCCEEDED, summary="flow completed")
            state.record(result)
            return result

        try:
            self.runner.run(task, context)
        except TaskFailed as exc:
            result = self._failure(
                task,
                task_failed(
                    task=name,
                    exit_code=exc.exit_code,
                    command_index=exc.details.get("command_index"),
                ),
                exc.exit_code,
                self._tolerates(task, override),
                started,
            )
        except Exception as exc:
            result = self._failure(
                task,
                engine_execution_error(
                    task=name,
                    exc_type=exc.__class__.__name__,
                    exc_message=str(exc),
                ),
                None,
                self._tolerates(task, override),
                started,
            )
        else:
            result = TaskResult(
                name=name,
                status=TaskStatus.SUCCEEDED,
                summary="ok",
                duration_ms=int((time.monotonic() - started) * 1000),
            )

        state.record(result)
        return result

    def run(
        self,
        ready_sets: Sequence[FrozenSet[str]],
        context: ExecutionContext,
        *,
        continue_on_error: Optional[bool] = None,
        manifest: Optional[RunManifest] = None,
        run_id: str = "",
    ) -> RunResult:
        """
        Executa os ready sets em sequência.

        Args:
            ready_sets: Saída de `plan_ready_sets`.
            context: Contexto somente leitura da run.
            continue_on_error: Override de tolerância em nível de run
                (precede settings e declarações quando não for None).
            manifest: Manifest a ser atualizado (opcional).
            run_id: Identificador da run.

        Returns:
            RunResult: Resultado por tarefa e desfecho agregado.
        """
        state = _RunState(manifest)
        not_dispatched: List[str] = []
        aborted = False

        largest = max((len(s) for s in ready_sets), default=1)
        workers = max(1, min(self.settings.concurrency, largest))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="flowmake") as pool:
            for ready in ready_sets:
                names = sorted(ready)
                if aborted:
                    not_dispatched.extend(names)
                    continue

                futures = {
                    pool.submit(self._execute, name, state, context, continue_on_error): name
                    for name in names
                }
                for future in as_completed(futures):
                    if future.cancelled():
                        continue
                    result = future.result()
                    if result.status == TaskStatus.FAILED and not result.tolerated and not aborted:
                        aborted = True
                        for pending, pending_name in futures.items():
                            if pending.cancel():
                                not_dispatched.append(pending_name)

        state.cancelled(not_dispatched)

        return RunResult(
            outcome=aggregate_outcome(list(state.results.values())),
            results=dict(state.results),
            ready_sets=tuple(ready_sets),
            not_dispatched=tuple(not_dispatched),
            run_id=run_id,
            manifest=manifest,
        )
