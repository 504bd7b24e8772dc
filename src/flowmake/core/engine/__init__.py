# src/flowmake/core/engine/__init__.py
"""
Engine do flowmake.

Este pacote contém a implementação responsável por **planejar** e
**executar** flows de tarefas.

Componentes principais:
    - composer → conjunto transitivo de tarefas de um flow
    - planner  → ready sets (Kahn em camadas) e detecção de ciclos
    - runner   → execução dos comandos de uma tarefa (subprocess)
    - executor → despacho dos ready sets com política de erro
    - engine   → fachada plan/run com Manifest
    - matrix   → múltiplas runs com fail-fast global

Invariantes:
    - Tarefas só executam após todas as suas dependências
    - Cada tarefa executa no máximo uma vez por run
    - O plano é determinístico para o mesmo registry e flow

Limites explícitos:
    - Não persiste resultados entre runs
    - Não interpreta a saída dos comandos
"""

from .composer import FlowComposer, expand
from .engine import Engine
from .executor import Executor, RunResult, aggregate_outcome
from .matrix import MatrixCell, MatrixResult, run_matrix
from .planner import ReadySet, build_graph, cyclic_members, flatten, plan_ready_sets
from .runner import CommandRunner, SubprocessRunner, task_environment

__all__ = [
    "CommandRunner",
    "Engine",
    "Executor",
    "FlowComposer",
    "MatrixCell",
    "MatrixResult",
    "ReadySet",
    "RunResult",
    "SubprocessRunner",
    "aggregate_outcome",
    "build_graph",
    "cyclic_members",
    "expand",
    "flatten",
    "plan_ready_sets",
    "run_matrix",
    "task_environment",
]
