# src/flowmake/core/tasks/types.py
"""
Tipos canônicos de tarefas do flowmake.

Este módulo define as estruturas e enums fundamentais que padronizam a
comunicação entre Registry, Planner, Executor e rastreabilidade.

Componentes principais:
    - Command      → invocação externa opaca (script de shell ou argv) com cwd opcional
    - Condition    → predicado declarativo sobre o ExecutionContext
    - CommandTask  → tarefa com corpo executável
    - FlowTask     → tarefa sem corpo, usada apenas para compor dependências
    - Task         → união etiquetada `CommandTask | FlowTask`
    - TaskStatus   → estados terminais de uma tarefa (SUCCEEDED, FAILED, SKIPPED)
    - TaskResult   → resultado imutável de uma tarefa
    - RunOutcome   → resultado agregado de uma run

Decisões arquiteturais:
    - Flows e tarefas de comando compartilham os mesmos metadados, mas são
      tipos distintos; `task.kind` é a etiqueta ("command" | "flow")
    - Uma CommandTask sem comandos é malformada; use FlowTask
    - Em uma CommandTask a ordem de `dependencies` não importa; em um FlowTask
      ela define a sequência dos grupos de entradas (ver planner)

Invariantes:
    - Todos os tipos são imutáveis (frozen)
    - Enums possuem valores textuais canônicos e estáveis

Limites explícitos:
    - Não executa comandos
    - Não resolve dependências
    - Não interpreta a semântica dos comandos
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from flowmake.core.exceptions import MalformedDeclarationError


class TaskStatus(str, Enum):
    """
    Estados terminais possíveis de uma tarefa.

    Estados definidos:
        - SUCCEEDED: comando(s) terminaram com status zero, ou flow concluído
        - FAILED: algum comando terminou com status diferente de zero
        - SKIPPED: condição não satisfeita ou tarefa desabilitada

    Estados intermediários (ex.: running) não pertencem a este enum.
    """
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunOutcome(str, Enum):
    """
    Resultado agregado de uma run.

        - SUCCESS: nenhuma falha
        - FAILURE: ao menos uma falha não tolerada
        - FAILURE_TOLERATED: apenas falhas toleradas (`continue_on_error`)
    """
    SUCCESS = "success"
    FAILURE = "failure"
    FAILURE_TOLERATED = "failure_tolerated"


@dataclass(frozen=True)
class Command:
    """
    Uma invocação externa opaca.

    Exatamente um entre `script` (executado por shell) e `argv`
    (executado diretamente) deve estar presente. `cwd` é relativo ao
    diretório raiz das declarações quando não for absoluto.
    """

    script: Optional[str] = None
    argv: Tuple[str, ...] = ()
    cwd: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.script is None) == (not self.argv):
            raise MalformedDeclarationError(
                "Command must define exactly one of 'script' or 'argv'",
                details={"script": self.script, "argv": list(self.argv)},
            )

    def describe(self) -> str:
        text = self.script.strip() if self.script is not None else " ".join(self.argv)
        return f"(cwd={self.cwd}) {text}" if self.cwd else text


@dataclass(frozen=True)
class Condition:
    """
    Predicado declarativo de aplicabilidade.

    Todos os campos não vazios devem ser satisfeitos (conjunção).
    Uma condição vazia sempre se aplica.
    """

    channels: Tuple[str, ...] = ()
    not_channels: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()
    targets: Tuple[str, ...] = ()
    env_set: Tuple[str, ...] = ()
    env_not_set: Tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)
    env_true: Tuple[str, ...] = ()
    env_false: Tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not any(
            (
                self.channels,
                self.not_channels,
                self.platforms,
                self.targets,
                self.env_set,
                self.env_not_set,
                self.env,
                self.env_true,
                self.env_false,
            )
        )


@dataclass(frozen=True)
class _TaskBase:
    name: str
    description: str = ""
    category: str = ""
    workspace_scope: bool = False
    clear: bool = False
    dependencies: Tuple[str, ...] = ()
    condition: Optional[Condition] = None
    continue_on_error: bool = False
    disabled: bool = False
    requires_success: bool = False
    env: Mapping[str, str] = field(default_factory=dict)

    kind: ClassVar[str] = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise MalformedDeclarationError("task.name must be a non-empty string")


@dataclass(frozen=True)
class FlowTask(_TaskBase):
    """Tarefa sem corpo: existe apenas pela sua lista de dependências."""

    kind: ClassVar[str] = "flow"

    @property
    def commands(self) -> Tuple[Command, ...]:
        return ()


@dataclass(frozen=True)
class CommandTask(_TaskBase):
    """Tarefa com um ou mais comandos externos executados em sequência."""

    commands: Tuple[Command, ...] = ()
    cwd: Optional[str] = None

    kind: ClassVar[str] = "command"

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.commands:
            raise MalformedDeclarationError(
                f"Command task '{self.name}' has no commands; declare it as a flow",
                details={"task": self.name},
            )


Task = Union[CommandTask, FlowTask]


@dataclass(frozen=True)
class TaskResult:
    """
    Resultado imutável de uma tarefa em uma run.

    Campos:
        - name: nome da tarefa
        - status: estado terminal
        - summary: motivo do skip ou detalhe da falha
        - exit_code: status de saída do comando que falhou (se houver)
        - tolerated: falha tolerada por `continue_on_error`
        - duration_ms: duração da execução
        - error: payload de erro serializado (FlowmakeErrorPayload.to_dict())

    Uma entrada é escrita exatamente uma vez por run e nunca alterada.
    """

    name: str
    status: TaskStatus
    summary: str = ""
    exit_code: Optional[int] = None
    tolerated: bool = False
    duration_ms: int = 0
    error: Dict[str, Any] = field(default_factory=dict)

    @property
    def satisfied(self) -> bool:
        """Se dependentes podem prosseguir (sucesso, skip ou falha tolerada)."""
        return self.status != TaskStatus.FAILED or self.tolerated
