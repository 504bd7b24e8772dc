"""
flowmake — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros serializáveis do flowmake.
Erros fazem parte do resultado de uma run (TaskResult.error e Manifest)
e devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlowmakeErrorPayload:
    """
    Payload canônico de erro do flowmake.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Declarações
DUPLICATE_TASK = "DUPLICATE_TASK"
UNKNOWN_TASK = "UNKNOWN_TASK"
MALFORMED_DECLARATION = "MALFORMED_DECLARATION"
DEPENDENCY_CYCLE = "DEPENDENCY_CYCLE"

# Execução
TASK_FAILED = "TASK_FAILED"

# Engine
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def task_failed(
    *,
    task: str,
    exit_code: Optional[int],
    command_index: Optional[int] = None,
    hint: str = "Inspecione a saída do comando externo; o engine não interpreta o comando.",
) -> FlowmakeErrorPayload:
    return FlowmakeErrorPayload(
        type=TASK_FAILED,
        message=f"Task '{task}' exited with status {exit_code}",
        details={
            "task": task,
            "exit_code": exit_code,
            "command_index": command_index,
        },
        hint=hint,
    )


def dependency_cycle(
    *,
    members: List[str],
    hint: str = "Remova uma das dependências que fecham o ciclo nas declarações.",
) -> FlowmakeErrorPayload:
    return FlowmakeErrorPayload(
        type=DEPENDENCY_CYCLE,
        message="Cycle detected in task dependency graph",
        details={"members": list(members)},
        hint=hint,
    )


def engine_execution_error(
    *,
    task: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o ambiente de execução do comando. Nenhum fallback é aplicado automaticamente.",
) -> FlowmakeErrorPayload:
    return FlowmakeErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a execução da tarefa",
        details={
            "task": task,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def engine_configuration_error(
    *,
    message: str = "Declarações inválidas para execução",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise as declarações de tarefas e a configuração do engine antes de reexecutar.",
) -> FlowmakeErrorPayload:
    return FlowmakeErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
    )
