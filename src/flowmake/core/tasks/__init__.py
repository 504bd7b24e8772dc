# src/flowmake/core/tasks/__init__.py
"""
# Tasks Core — flowmake

Este pacote define o modelo declarativo de tarefas do flowmake.

## Componentes

- **types**: `CommandTask`, `FlowTask`, `Command`, `Condition`,
  `TaskStatus`, `TaskResult`, `RunOutcome`
- **registry**: `TaskRegistry` com unicidade de nomes, camadas e congelamento
- **conditions**: avaliador de aplicabilidade sobre o `ExecutionContext`
- **declarations**: leitura de manifestos TOML/YAML/JSON
- **builtin**: flows e hooks padrão (camada base)

## Princípios Fundamentais

- Tarefas **não conhecem** o Engine nem o planner
- Dependências são **explícitas e declarativas**
- O registry é imutável depois que a resolução começa
"""

from .registry import TaskRegistry
from .types import (
    Command,
    CommandTask,
    Condition,
    FlowTask,
    RunOutcome,
    Task,
    TaskResult,
    TaskStatus,
)

__all__ = [
    "Command",
    "CommandTask",
    "Condition",
    "FlowTask",
    "RunOutcome",
    "Task",
    "TaskRegistry",
    "TaskResult",
    "TaskStatus",
]
