"""
flowmake — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do flowmake.

Objetivo:
- Permitir que registry, planner, runner e engine levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para FlowmakeErrorPayload
- Separar erros de declaração (pré-execução) de falhas de tarefas (execução)

Taxonomia:
- ConfigError   → fatal, pré-execução (nome duplicado, tarefa desconhecida, declaração malformada)
- CycleError    → fatal, pré-execução (ciclo no subgrafo alcançável)
- TaskFailed    → execução (comando externo terminou com status != 0)
- RunRefusedError → run recusada porque o fail-fast global já foi sinalizado

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A mensagem é curta e humana; nenhum stack trace é embutido em payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(eq=False)
class FlowmakeException(Exception):
    """Base class para exceções internas do flowmake.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Declarações / Configuração (fatais, pré-execução)
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ConfigError(FlowmakeException):
    """Declarações ou configuração inválidas; nenhuma tarefa é executada."""


@dataclass(eq=False)
class DuplicateNameError(ConfigError):
    """Nome de tarefa já registrado sem intenção explícita de sobrescrita (`clear`)."""


@dataclass(eq=False)
class UnknownTaskError(ConfigError):
    """Referência a uma tarefa ou flow que não existe no registry."""


@dataclass(eq=False)
class MalformedDeclarationError(ConfigError):
    """Declaração de tarefa com chave desconhecida ou valor de tipo inválido."""


@dataclass(eq=False)
class DeclarationsNotFoundError(ConfigError):
    """Arquivo de declarações de tarefas não encontrado."""


@dataclass(eq=False)
class RegistryFrozenError(ConfigError):
    """Tentativa de registrar tarefa depois que a resolução começou."""


# ---------------------------------------------------------------------------
# Grafo
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class CycleError(FlowmakeException):
    """Ciclo no subgrafo alcançável a partir do flow solicitado.

    `details["members"]` contém apenas os nós que participam de ciclos,
    em ordem lexicográfica.
    """

    @property
    def members(self) -> List[str]:
        return list(self.details.get("members", []))


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class TaskFailed(FlowmakeException):
    """Comando externo de uma tarefa terminou com status diferente de zero."""

    @property
    def exit_code(self) -> Optional[int]:
        return self.details.get("exit_code")


@dataclass(eq=False)
class RunRefusedError(FlowmakeException):
    """Run não iniciada porque um sinal de fail-fast global já foi emitido."""
