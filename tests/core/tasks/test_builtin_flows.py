# tests/core/tasks/test_builtin_flows.py
"""
Testes dos flows embutidos (camada base).

Os flows padrão formam o esqueleto build/test/CI sobreposto pelos projetos.
Nenhum deles possui comandos.
"""

from flowmake.core.tasks.builtin import DEFAULT_TASK, HOOKS, base_registry
from flowmake.core.tasks.types import FlowTask


def test_base_registry_contains_only_flows():
    registry = base_registry()
    assert all(isinstance(task, FlowTask) for task in registry)
    for hook in HOOKS:
        assert registry.lookup(hook).category == "Hooks"


def test_default_task_points_to_dev_test_flow():
    registry = base_registry()
    assert registry.lookup(DEFAULT_TASK).dependencies == ("dev-test-flow",)
    assert registry.lookup("test-flow").dependencies == (
        "pre-test",
        "test-multi-phases-flow",
        "post-test",
    )


def test_ci_flow_composition():
    ci = base_registry().lookup("ci-flow")
    assert ci.dependencies[0] == "pre-ci-flow"
    assert ci.dependencies[-1] == "post-ci-flow"
    assert "build" in ci.dependencies and "test" in ci.dependencies
    assert len(ci.dependencies) == 13


def test_each_call_returns_a_fresh_unfrozen_registry():
    first = base_registry().freeze()
    second = base_registry()
    assert first.frozen and not second.frozen
    assert first.names() == second.names()
