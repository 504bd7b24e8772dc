# src/flowmake/core/tasks/conditions.py
"""
Avaliador de condições de aplicabilidade.

Dada uma tarefa e o ExecutionContext da run, decide se a tarefa se aplica
ou deve ser registrada como SKIPPED. Uma tarefa pulada continua
satisfazendo seus dependentes: skip não é falha.

Campos de condição (todos conjuntivos):
    - channels / not_channels → canal do toolchain
    - platforms               → plataforma do contexto
    - targets                 → triple alvo
    - env_set / env_not_set   → presença de variáveis
    - env                     → igualdade de valores
    - env_true / env_false    → valores verdadeiros ("true", "1", "yes", "on")

Limites explícitos:
    - Não executa tarefas
    - Não decide política de erro
"""

from __future__ import annotations

from typing import Optional

from flowmake.core.context import ExecutionContext

from .types import Condition, Task


_TRUTHY = {"true", "1", "yes", "on"}


def _is_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


def unmet_reason(condition: Optional[Condition], context: ExecutionContext) -> Optional[str]:
    """Retorna o primeiro critério não satisfeito, ou None se a condição se aplica."""
    if condition is None or condition.is_empty():
        return None

    env = context.env

    if condition.channels and context.channel not in condition.channels:
        return f"channel '{context.channel}' not in {list(condition.channels)}"
    if condition.not_channels and context.channel in condition.not_channels:
        return f"channel '{context.channel}' is excluded"
    if condition.platforms and context.platform not in condition.platforms:
        return f"platform '{context.platform}' not in {list(condition.platforms)}"
    if condition.targets and context.target not in condition.targets:
        return f"target '{context.target}' not in {list(condition.targets)}"

    for key in condition.env_set:
        if key not in env:
            return f"env '{key}' is not set"
    for key in condition.env_not_set:
        if key in env:
            return f"env '{key}' is set"
    for key, expected in condition.env.items():
        if env.get(key) != expected:
            return f"env '{key}' != '{expected}'"
    for key in condition.env_true:
        if not _is_truthy(env.get(key)):
            return f"env '{key}' is not true"
    for key in condition.env_false:
        if _is_truthy(env.get(key)):
            return f"env '{key}' is not false"

    return None


def explain(task: Task, context: ExecutionContext) -> Optional[str]:
    """Motivo pelo qual `task` não se aplica em `context` (None se aplicável)."""
    return unmet_reason(task.condition, context)


def applies(task: Task, context: ExecutionContext) -> bool:
    return explain(task, context) is None
