# src/flowmake/core/tasks/registry.py
"""
Registro estrutural de tarefas do flowmake.

Este módulo define o `TaskRegistry`, responsável por registrar tarefas e
flows declarados e validar a integridade estrutural antes de qualquer
planejamento ou execução.

O registry atua como uma camada de proteção antecipada, garantindo que:
    - cada tarefa possua um nome único
    - redefinições só ocorram com intenção explícita (`clear`)
    - a ordem de declaração seja preservada explicitamente
    - nenhuma tarefa seja adicionada depois que a resolução começou

Camadas (layering):
    Um registry base (flows embutidos) pode ser sobreposto por um registry
    de usuário. Entradas do usuário sombreiam as do base pelo nome:
        - `clear = true`  → a entrada do usuário substitui a do base
        - `clear = false` → a entrada do usuário estende a do base
          (dependências acrescentadas sem duplicatas)

Invariantes:
    - Cada nome é único no registry
    - A lista de tarefas reflete a ordem de registro
    - Após `freeze()`, o registry é somente leitura

Limites explícitos:
    - Não planeja execução (não é planner)
    - Não executa tarefas
    - Não avalia condições
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List

from flowmake.core.exceptions import (
    DuplicateNameError,
    RegistryFrozenError,
    UnknownTaskError,
)

from .types import CommandTask, FlowTask, Task


def extend_task(base: Task, overlay: Task) -> Task:
    """
    Combina uma redefinição sem `clear` com a definição original.

    Regras:
        - dependências: as do base seguidas das novas, sem duplicatas
        - textos, condição e cwd: os do overlay quando definidos
        - comandos: os do overlay quando ele tiver corpo, senão os do base
        - flags booleanas: verdadeiras se verdadeiras em qualquer lado
        - env: merge raso, overlay vence

    Returns:
        Task: Nova tarefa; nenhum dos argumentos é mutado.
    """
    dependencies = list(base.dependencies)
    for dep in overlay.dependencies:
        if dep not in dependencies:
            dependencies.append(dep)

    common = dict(
        name=base.name,
        description=overlay.description or base.description,
        category=overlay.category or base.category,
        workspace_scope=overlay.workspace_scope or base.workspace_scope,
        clear=False,
        dependencies=tuple(dependencies),
        condition=overlay.condition if overlay.condition is not None else base.condition,
        continue_on_error=overlay.continue_on_error or base.continue_on_error,
        disabled=overlay.disabled or base.disabled,
        requires_success=overlay.requires_success or base.requires_success,
        env={**dict(base.env), **dict(overlay.env)},
    )

    if isinstance(overlay, CommandTask):
        cwd = overlay.cwd if overlay.cwd is not None else getattr(base, "cwd", None)
        return CommandTask(commands=overlay.commands, cwd=cwd, **common)
    if isinstance(base, CommandTask):
        return CommandTask(commands=base.commands, cwd=base.cwd, **common)
    return FlowTask(**common)


@dataclass
class TaskRegistry:
    """
    Registro canônico de tarefas para validação estrutural pré-execução.

    Decisões arquiteturais:
        - Registro e resolução são fases temporalmente disjuntas
        - A ordem de inserção é preservada separadamente
        - Leituras após `freeze()` dispensam sincronização
    """

    _tasks: Dict[str, Task] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)
    _frozen: bool = field(default=False, init=False)

    def register(self, task: Task) -> None:
        """
        Registra uma tarefa.

        Raises:
            RegistryFrozenError: Se o registry já estiver congelado.
            DuplicateNameError: Se o nome já existir e a tarefa não declarar `clear`.
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register task '{task.name}': registry is frozen",
                details={"task": task.name},
            )

        if task.name in self._tasks and not task.clear:
            raise DuplicateNameError(
                f"Duplicate task name: {task.name}",
                details={"task": task.name},
                hint="Declare `clear = true` para substituir a definição existente.",
            )

        self._put(task)

    def _put(self, task: Task) -> None:
        if task.name not in self._tasks:
            self._order.append(task.name)
        self._tasks[task.name] = task

    def lookup(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTaskError(
                f"Unknown task: {name}",
                details={"task": name},
            ) from None

    def names(self) -> List[str]:
        return list(self._order)

    def tasks(self) -> List[Task]:
        return [self._tasks[name] for name in self._order]

    def freeze(self) -> "TaskRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks())

    @classmethod
    def layered(cls, base: "TaskRegistry", overlay: "TaskRegistry") -> "TaskRegistry":
        """
        Constrói um novo registry com `overlay` sombreando `base` por nome.

        Nenhum dos registries de entrada é alterado.
        """
        merged = cls()
        for task in base.tasks():
            merged._put(task)

        for task in overlay.tasks():
            if task.name in merged and not task.clear:
                merged._put(extend_task(merged.lookup(task.name), task))
            else:
                merged._put(task)

        return merged
