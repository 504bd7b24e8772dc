# tests/core/tasks/test_task_types.py
"""
Testes dos tipos canônicos de tarefas.

Valida as pré-condições estruturais de Command, CommandTask e FlowTask
e a semântica de `TaskResult.satisfied` usada pelo executor.
"""

import pytest

from flowmake.core.exceptions import MalformedDeclarationError
from flowmake.core.tasks.types import (
    Command,
    CommandTask,
    Condition,
    FlowTask,
    RunOutcome,
    TaskResult,
    TaskStatus,
)


def test_command_requires_exactly_one_body():
    with pytest.raises(MalformedDeclarationError):
        Command()
    with pytest.raises(MalformedDeclarationError):
        Command(script="make", argv=("make",))

    assert Command(script="cargo build").describe() == "cargo build"
    assert Command(argv=("cargo", "test"), cwd="crates/a").describe() == "(cwd=crates/a) cargo test"


def test_command_task_without_commands_is_malformed():
    with pytest.raises(MalformedDeclarationError) as exc:
        CommandTask(name="build")
    assert exc.value.details == {"task": "build"}


def test_task_name_must_be_non_empty():
    with pytest.raises(MalformedDeclarationError):
        FlowTask(name="  ")


def test_kind_tags():
    flow = FlowTask(name="ci-flow", dependencies=("build",))
    task = CommandTask(name="build", commands=(Command(script="true"),))

    assert flow.kind == "flow"
    assert flow.commands == ()
    assert task.kind == "command"


def test_empty_condition():
    assert Condition().is_empty()
    assert not Condition(channels=("nightly",)).is_empty()
    assert not Condition(env={"CI": "true"}).is_empty()


def test_result_satisfied_semantics():
    """
    Sucesso, skip e falha tolerada satisfazem dependentes; falha não tolerada não.
    """
    assert TaskResult(name="a", status=TaskStatus.SUCCEEDED).satisfied
    assert TaskResult(name="a", status=TaskStatus.SKIPPED).satisfied
    assert TaskResult(name="a", status=TaskStatus.FAILED, tolerated=True).satisfied
    assert not TaskResult(name="a", status=TaskStatus.FAILED).satisfied


def test_enum_values_are_stable():
    assert [s.value for s in TaskStatus] == ["succeeded", "failed", "skipped"]
    assert RunOutcome.FAILURE_TOLERATED.value == "failure_tolerated"
