# src/flowmake/core/tasks/builtin.py
"""
Flows embutidos (camada base do registry).

Os flows abaixo formam o esqueleto padrão de build/test/CI com hooks
pré/pós vazios, que projetos sobrepõem por nome. Um projeto que declara
`[tasks.build]` com `clear = true` substitui a lista de dependências
padrão; sem `clear`, a estende.

Nenhum flow embutido executa comandos: ferramentas de formatação, lint,
cobertura etc. são tarefas opacas declaradas pelo próprio projeto.
"""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from .registry import TaskRegistry
from .types import FlowTask


DEFAULT_TASK = "default"

# Hooks vazios: pontos de extensão compartilhados pelos flows padrão.
HOOKS: Tuple[str, ...] = (
    "pre-ci-flow",
    "post-ci-flow",
    "print-env-flow",
    "pre-build",
    "post-build",
    "pre-test",
    "post-test",
    "check-format-ci-flow",
    "clippy-ci-flow",
    "examples-ci-flow",
    "bench-ci-flow",
    "outdated-ci-flow",
    "ci-coverage-flow",
    "format-flow",
)

_FLOWS: Dict[str, Tuple[str, str, Sequence[str]]] = {
    "build": ("Build", "Runs the build.", ()),
    "check": ("Test", "Runs the static checks.", ()),
    "test": ("Test", "Runs all available tests.", ()),
    "test-multi-phases-flow": ("Test", "Runs the test phases.", ("test",)),
    "test-flow": (
        "Test",
        "Runs pre/post hooks and the tests.",
        ("pre-test", "test-multi-phases-flow", "post-test"),
    ),
    "ci-flow": (
        "CI",
        "CI flow: build and test with every CI hook.",
        (
            "pre-ci-flow",
            "print-env-flow",
            "pre-build",
            "check-format-ci-flow",
            "clippy-ci-flow",
            "build",
            "post-build",
            "test",
            "examples-ci-flow",
            "bench-ci-flow",
            "outdated-ci-flow",
            "ci-coverage-flow",
            "post-ci-flow",
        ),
    ),
    "dev-test-flow": (
        "Development",
        "Development testing flow: format, build and test.",
        ("format-flow", "pre-build", "build", "post-build", "test-flow"),
    ),
    DEFAULT_TASK: ("Development", "Default task.", ("dev-test-flow",)),
}


def base_registry() -> TaskRegistry:
    """Novo registry com os hooks e flows padrão (não congelado)."""
    registry = TaskRegistry()
    for name in HOOKS:
        registry.register(FlowTask(name=name, category="Hooks", description="Empty hook."))
    for name, (category, description, dependencies) in _FLOWS.items():
        registry.register(
            FlowTask(
                name=name,
                category=category,
                description=description,
                dependencies=tuple(dependencies),
            )
        )
    return registry
