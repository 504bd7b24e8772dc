# src/flowmake/core/engine/composer.py
"""
Composição de flows.

Um flow é uma tarefa cujo único conteúdo é sua lista de dependências; um
flow pode referenciar outros flows. Este módulo expande recursivamente
um flow solicitado no conjunto transitivo (deduplicado) de tarefas que
ele alcança, incluindo o próprio flow.

Decisões arquiteturais:
    - A semântica de `clear`/override já foi aplicada pelas camadas do registry
    - A expansão termina mesmo na presença de ciclos (conjunto de visitados);
      a detecção de ciclos é responsabilidade do planner
    - Referências desconhecidas são erro fatal de configuração

Limites explícitos:
    - Não ordena tarefas
    - Não avalia condições
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Set, Tuple

from flowmake.core.exceptions import UnknownTaskError
from flowmake.core.tasks.registry import TaskRegistry


class FlowComposer:
    """Expande flows sobre um registry (tipicamente já congelado)."""

    def __init__(self, registry: TaskRegistry):
        self.registry = registry

    def expand(self, flow_name: str) -> FrozenSet[str]:
        return self.expand_many([flow_name])

    def expand_many(self, roots: Iterable[str]) -> FrozenSet[str]:
        """
        Fecho transitivo das dependências de `roots` (incluindo os próprios roots).

        Raises:
            UnknownTaskError: Se um root ou qualquer dependência não existir.
        """
        visited: Set[str] = set()
        pending: List[Tuple[str, str]] = [(name, "") for name in roots]

        while pending:
            name, required_by = pending.pop()
            if name in visited:
                continue
            if name not in self.registry:
                details = {"task": name}
                if required_by:
                    details["required_by"] = required_by
                    message = f"Task '{required_by}' depends on unknown task '{name}'"
                else:
                    message = f"Unknown task: {name}"
                raise UnknownTaskError(message, details=details)

            visited.add(name)
            task = self.registry.lookup(name)
            for dep in task.dependencies:
                if dep not in visited:
                    pending.append((dep, name))

        return frozenset(visited)


def expand(registry: TaskRegistry, flow_name: str) -> FrozenSet[str]:
    return FlowComposer(registry).expand(flow_name)
