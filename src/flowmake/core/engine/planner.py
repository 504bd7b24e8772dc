# src/flowmake/core/engine/planner.py
"""
Planejador de execução (resolvedor de dependências).

Este módulo valida a estrutura do grafo de tarefas alcançável a partir
de um conjunto de roots e o particiona em uma sequência de *ready sets*:
conjuntos de tarefas cujas dependências já estão satisfeitas naquele
ponto da execução.

Uma aresta `A → B` significa "A depende de B": B precisa terminar (ou
ser pulada) antes de A iniciar.

Princípios fundamentais:
    - Apenas o subgrafo alcançável a partir dos roots é considerado;
      tarefas não referenciadas nunca executam
    - Uma tarefa alcançada por múltiplos caminhos aparece uma única vez
    - Dentro de um ready set não há restrição de ordem
    - A lista de dependências de um flow é ordenada: as entradas formam
      grupos (cada flow sozinho, comandos consecutivos juntos) e tudo o que
      um grupo traz de novo ao grafo espera o grupo anterior terminar

Decisões arquiteturais:
    - Algoritmo de Kahn em camadas (um ready set por iteração)
    - Em caso de ciclo, apenas os membros de componentes fortemente
      conexos cíclicos (Tarjan) são reportados, nunca o grafo inteiro
    - Auto-dependência é um ciclo de um único membro

Invariantes:
    - Nenhuma tarefa aparece antes de suas dependências
    - Toda tarefa alcançável aparece em exatamente um ready set
    - A mesma entrada sempre produz os mesmos ready sets

Limites explícitos:
    - Não executa tarefas
    - Não avalia condições
    - Não decide políticas de erro
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Iterator, List, Sequence, Set, Tuple

from flowmake.core.exceptions import CycleError
from flowmake.core.tasks.registry import TaskRegistry
from flowmake.core.tasks.types import CommandTask, FlowTask

from .composer import FlowComposer


ReadySet = FrozenSet[str]


def build_graph(registry: TaskRegistry, roots: Iterable[str]) -> Dict[str, Tuple[str, ...]]:
    """
    Constrói o grafo de dependências restrito ao subgrafo alcançável.

    Returns:
        Dict[str, Tuple[str, ...]]: nome → dependências distintas (ordem declarada),
        seguidas das arestas de sequência herdadas dos flows.

    Raises:
        UnknownTaskError: Se algum nome alcançável não existir.
    """
    composer = FlowComposer(registry)
    reachable = composer.expand_many(roots)
    declared: Dict[str, Tuple[str, ...]] = {}
    for name in reachable:
        deps: List[str] = []
        for dep in registry.lookup(name).dependencies:
            if dep not in deps:
                deps.append(dep)
        declared[name] = tuple(deps)

    graph = dict(declared)
    for name in sorted(reachable):
        if isinstance(registry.lookup(name), FlowTask):
            _sequence_flow(registry, composer, name, declared[name], graph)
    return graph


def _entry_groups(registry: TaskRegistry, entries: Sequence[str]) -> List[List[str]]:
    """Agrupa as entradas de um flow: cada flow sozinho, comandos consecutivos juntos."""
    groups: List[List[str]] = []
    previous_was_command = False
    for entry in entries:
        is_command = isinstance(registry.lookup(entry), CommandTask)
        if is_command and previous_was_command:
            groups[-1].append(entry)
        else:
            groups.append([entry])
        previous_was_command = is_command
    return groups


def _sequence_flow(
    registry: TaskRegistry,
    composer: FlowComposer,
    flow: str,
    entries: Sequence[str],
    graph: Dict[str, Tuple[str, ...]],
) -> None:
    """
    Acrescenta ao grafo as arestas de sequência de um flow.

    Cada nó que um grupo traz de novo (fora do fecho dos grupos anteriores)
    passa a depender de todas as entradas do grupo anterior.
    """
    seen: Set[str] = set()
    barrier: Tuple[str, ...] = ()
    for group in _entry_groups(registry, entries):
        closure: Set[str] = set()
        for entry in group:
            closure |= composer.expand(entry)

        for node in sorted(closure - seen - {flow}):
            extra = tuple(b for b in barrier if b != node and b not in graph[node])
            if extra:
                graph[node] = graph[node] + extra

        seen |= closure
        barrier = tuple(group)


def _successors(graph: Dict[str, Tuple[str, ...]], node: str, nodes: Set[str]) -> Iterator[str]:
    return iter(sorted(dep for dep in graph[node] if dep in nodes))


def cyclic_members(graph: Dict[str, Tuple[str, ...]], nodes: Iterable[str]) -> List[str]:
    """
    Membros de ciclos dentro de `nodes` (Tarjan iterativo).

    Nós apenas bloqueados por um ciclo (dependentes dele) não são incluídos.
    """
    scope = set(nodes)
    index: Dict[str, int] = {}
    low: Dict[str, int] = {}
    stack: List[str] = []
    on_stack: Set[str] = set()
    members: Set[str] = set()
    counter = 0

    for start in sorted(scope):
        if start in index:
            continue

        index[start] = low[start] = counter
        counter += 1
        stack.append(start)
        on_stack.add(start)
        work = [(start, _successors(graph, start, scope))]

        while work:
            node, successors = work[-1]
            descended = False
            for nxt in successors:
                if nxt not in index:
                    index[nxt] = low[nxt] = counter
                    counter += 1
                    stack.append(nxt)
                    on_stack.add(nxt)
                    work.append((nxt, _successors(graph, nxt, scope)))
                    descended = True
                    break
                if nxt in on_stack:
                    low[node] = min(low[node], index[nxt])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low[parent] = min(low[parent], low[node])

            if low[node] == index[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                if len(component) > 1 or node in graph[node]:
                    members.update(component)

    return sorted(members)


def plan_ready_sets(registry: TaskRegistry, roots: Iterable[str]) -> List[ReadySet]:
    """
    Valida e particiona o subgrafo alcançável em ready sets ordenados.

    Args:
        registry (TaskRegistry): Registry de tarefas (idealmente congelado).
        roots (Iterable[str]): Tarefas/flows solicitados.

    Returns:
        List[FrozenSet[str]]: Ready sets na ordem de despacho.

    Raises:
        UnknownTaskError: Se uma tarefa referenciada não existir.
        CycleError: Se o subgrafo alcançável contiver um ciclo.
    """
    graph = build_graph(registry, roots)

    remaining_deps: Dict[str, int] = {name: len(deps) for name, deps in graph.items()}
    dependents: Dict[str, Set[str]] = {name: set() for name in graph}
    for name, deps in graph.items():
        for dep in deps:
            dependents[dep].add(name)

    ready_sets: List[ReadySet] = []
    ready = {name for name, count in remaining_deps.items() if count == 0}

    while ready:
        ready_sets.append(frozenset(ready))
        next_ready: Set[str] = set()
        for name in ready:
            del remaining_deps[name]
            for child in dependents[name]:
                remaining_deps[child] -= 1
                if remaining_deps[child] == 0:
                    next_ready.add(child)
        ready = next_ready

    if remaining_deps:
        members = cyclic_members(graph, remaining_deps)
        raise CycleError(
            f"Cycle detected in task dependency graph: {', '.join(members)}",
            details={"members": members},
            hint="Remova uma das dependências que fecham o ciclo nas declarações.",
        )

    return ready_sets


def flatten(ready_sets: Iterable[ReadySet]) -> List[str]:
    """Ordem linear determinística (por ready set, lexicográfica dentro dele)."""
    return [name for ready in ready_sets for name in sorted(ready)]
