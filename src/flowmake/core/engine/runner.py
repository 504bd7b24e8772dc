# src/flowmake/core/engine/runner.py
"""
Execução dos comandos externos de uma tarefa.

O corpo de uma tarefa é opaco para o engine: ele só conhece o status de
saída. O runner executa os comandos em sequência e levanta `TaskFailed`
no primeiro status diferente de zero.

Ambiente dos comandos (do menos ao mais prioritário):
    - ambiente do ExecutionContext (processo + overrides da invocação)
    - `[env]` global das declarações
    - `env` da própria tarefa
    - variáveis FLOWMAKE_* da run (nome da tarefa, canal, plataforma, alvo, workspace)

Limites explícitos:
    - Não interpreta a saída dos comandos
    - Não mata comandos em andamento
    - Não decide política de erro
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, runtime_checkable

from flowmake.core.context import ExecutionContext
from flowmake.core.exceptions import TaskFailed
from flowmake.core.tasks.types import CommandTask


@runtime_checkable
class CommandRunner(Protocol):
    """Contrato mínimo para executar o corpo de uma `CommandTask`."""

    def run(self, task: CommandTask, context: ExecutionContext) -> None:
        """Executa todos os comandos; levanta `TaskFailed` em status != 0."""
        ...


def task_environment(
    task: CommandTask,
    context: ExecutionContext,
    declared_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    env = dict(context.env)
    env.update(declared_env or {})
    env.update(task.env)
    env["FLOWMAKE_TASK_NAME"] = task.name
    env["FLOWMAKE_CHANNEL"] = context.channel
    env["FLOWMAKE_PLATFORM"] = context.platform
    env["FLOWMAKE_WORKSPACE"] = "true" if task.workspace_scope else "false"
    if context.target:
        env["FLOWMAKE_TARGET"] = context.target
    return env


class SubprocessRunner:
    """Runner padrão: um subprocesso por comando, stdout/stderr herdados."""

    def __init__(
        self,
        *,
        root_dir: Optional[Path] = None,
        declared_env: Optional[Mapping[str, str]] = None,
    ):
        self.root_dir = Path(root_dir) if root_dir is not None else Path.cwd()
        self.declared_env = dict(declared_env or {})

    def _resolve_cwd(self, cwd: Optional[str]) -> Path:
        if cwd is None:
            return self.root_dir
        path = Path(cwd)
        return path if path.is_absolute() else self.root_dir / path

    def run(self, task: CommandTask, context: ExecutionContext) -> None:
        env = task_environment(task, context, self.declared_env)

        for index, command in enumerate(task.commands):
            cwd = self._resolve_cwd(command.cwd if command.cwd is not None else task.cwd)
            if command.script is not None:
                completed = subprocess.run(command.script, shell=True, cwd=cwd, env=env)
            else:
                completed = subprocess.run(list(command.argv), cwd=cwd, env=env)

            if completed.returncode != 0:
                raise TaskFailed(
                    f"Task '{task.name}' exited with status {completed.returncode}",
                    details={
                        "task": task.name,
                        "exit_code": completed.returncode,
                        "command_index": index,
                        "command": command.describe(),
                    },
                )
