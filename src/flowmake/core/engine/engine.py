# src/flowmake/core/engine/engine.py
"""
Engine canônico do flowmake (composer + planner + executor).

Fluxo de uma run:
    registry congelado + flow solicitado
        → FlowComposer (conjunto transitivo)
        → planner (ready sets, ciclos)
        → Executor (condições, execução, política de erro)
        → RunResult + Manifest

Garantias:
    - Erros de configuração e ciclos são levantados antes de qualquer tarefa
    - Uma run recusa iniciar se o sinal de fail-fast global já estiver ativo
    - Nenhum estado é compartilhado entre runs além do registry somente leitura
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import FrozenSet, List, Mapping, Optional

from flowmake import __version__
from flowmake.core.config.settings import EngineSettings
from flowmake.core.context import ExecutionContext
from flowmake.core.exceptions import RunRefusedError
from flowmake.core.tasks.declarations import Declarations
from flowmake.core.tasks.registry import TaskRegistry
from flowmake.core.traceability.manifest import add_event, create_manifest, save_manifest

from .executor import Executor, RunResult
from .planner import plan_ready_sets
from .runner import CommandRunner, SubprocessRunner


class Engine:
    """Fachada de planejamento e execução sobre um registry de tarefas."""

    def __init__(
        self,
        registry: TaskRegistry,
        *,
        settings: Optional[EngineSettings] = None,
        runner: Optional[CommandRunner] = None,
        root_dir: Optional[Path] = None,
        declared_env: Optional[Mapping[str, str]] = None,
        declarations_hash: str = "",
    ):
        self.registry = registry
        self.settings = settings or EngineSettings()
        self.runner = runner or SubprocessRunner(root_dir=root_dir, declared_env=declared_env)
        self.declarations_hash = declarations_hash

    @classmethod
    def from_declarations(
        cls,
        declarations: Declarations,
        *,
        settings: Optional[EngineSettings] = None,
        runner: Optional[CommandRunner] = None,
    ) -> "Engine":
        return cls(
            declarations.build_registry(),
            settings=settings,
            runner=runner,
            root_dir=declarations.root_dir,
            declared_env=declarations.env,
            declarations_hash=declarations.declarations_hash,
        )

    def plan(self, flow: str) -> List[FrozenSet[str]]:
        """Congela o registry e devolve os ready sets do flow, sem executar nada."""
        self.registry.freeze()
        return plan_ready_sets(self.registry, [flow])

    def run(
        self,
        flow: str,
        context: ExecutionContext,
        *,
        cancel_event: Optional[threading.Event] = None,
        continue_on_error: Optional[bool] = None,
        run_id: Optional[str] = None,
        manifest_path: Optional[str] = None,
    ) -> RunResult:
        """
        Planeja e executa `flow` em `context`.

        `manifest_path`, quando informado, substitui `settings.manifest_path`
        apenas nesta run.

        Raises:
            RunRefusedError: Se `cancel_event` já estiver sinalizado.
            ConfigError: Declarações inválidas (nenhuma tarefa é executada).
            CycleError: Ciclo no subgrafo alcançável (nenhuma tarefa é executada).
        """
        if cancel_event is not None and cancel_event.is_set():
            raise RunRefusedError(
                f"Run of '{flow}' refused: fail-fast already signalled",
                details={"flow": flow},
            )

        ready_sets = self.plan(flow)

        run_id = run_id or uuid.uuid4().hex
        manifest = create_manifest(
            run_id=run_id,
            flow=flow,
            started_at=datetime.now(timezone.utc),
            flowmake_version=__version__,
            config_hash=self.settings.config_hash,
            declarations_hash=self.declarations_hash,
            context=context.describe(),
        )
        add_event(
            manifest,
            event_type="run_started",
            payload={"ready_sets": [sorted(s) for s in ready_sets]},
        )

        executor = Executor(self.registry, runner=self.runner, settings=self.settings)
        result = executor.run(
            ready_sets,
            context,
            continue_on_error=continue_on_error,
            manifest=manifest,
            run_id=run_id,
        )

        add_event(
            manifest,
            event_type="run_finished",
            payload={
                "outcome": result.outcome.value,
                "not_dispatched": list(result.not_dispatched),
            },
        )

        manifest_path = manifest_path or self.settings.manifest_path
        if manifest_path:
            save_manifest(manifest, Path(manifest_path))

        return result
