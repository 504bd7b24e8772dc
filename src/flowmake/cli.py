# src/flowmake/cli.py
"""
Interface de linha de comando do flowmake.

Comandos:
    - run  FLOW → planeja e executa um flow
    - plan FLOW → mostra os ready sets sem executar nada
    - list      → lista as tarefas do registry efetivo

Códigos de saída:
    - 0 → sucesso
    - 1 → falha (alguma tarefa falhou sem tolerância)
    - 3 → falha tolerada (sucesso com aviso)
    - 4 → declarações ou configuração inválidas (nada foi executado)

Erros de configuração são impressos em stderr como payload JSON canônico.
"""

from __future__ import annotations

import dataclasses
import json
from collections import defaultdict
from typing import Dict, Optional, Tuple

import click

from flowmake import __version__
from flowmake.core.config import load_config, resolve_settings
from flowmake.core.config.settings import EngineSettings
from flowmake.core.context import ExecutionContext
from flowmake.core.engine.engine import Engine
from flowmake.core.errors import (
    DUPLICATE_TASK,
    MALFORMED_DECLARATION,
    UNKNOWN_TASK,
    FlowmakeErrorPayload,
    dependency_cycle,
    engine_configuration_error,
)
from flowmake.core.exceptions import (
    ConfigError,
    CycleError,
    DuplicateNameError,
    MalformedDeclarationError,
    UnknownTaskError,
)
from flowmake.core.tasks.declarations import DEFAULT_DECLARATIONS_FILE, Declarations, load_declarations
from flowmake.core.tasks.types import RunOutcome, TaskStatus


EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_FAILURE_TOLERATED = 3
EXIT_CONFIG_ERROR = 4

_STATUS_COLORS = {
    TaskStatus.SUCCEEDED: "green",
    TaskStatus.FAILED: "red",
    TaskStatus.SKIPPED: "yellow",
}

_OUTCOME_EXIT = {
    RunOutcome.SUCCESS: EXIT_SUCCESS,
    RunOutcome.FAILURE: EXIT_FAILURE,
    RunOutcome.FAILURE_TOLERATED: EXIT_FAILURE_TOLERATED,
}


def _fail_config(ctx: click.Context, payload: FlowmakeErrorPayload) -> None:
    click.echo(json.dumps(payload.to_dict(), ensure_ascii=False, sort_keys=True), err=True)
    ctx.exit(EXIT_CONFIG_ERROR)


_ERROR_CODES = (
    (DuplicateNameError, DUPLICATE_TASK),
    (UnknownTaskError, UNKNOWN_TASK),
    (MalformedDeclarationError, MALFORMED_DECLARATION),
)


def _config_payload(exc: ConfigError) -> FlowmakeErrorPayload:
    details = {"error": exc.__class__.__name__, **exc.details}
    payload = engine_configuration_error(message=exc.message, details=details)
    if exc.hint:
        payload = dataclasses.replace(payload, hint=exc.hint)
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return dataclasses.replace(payload, type=code)
    return payload


def _load(ctx: click.Context) -> Tuple[Declarations, EngineSettings]:
    opts = ctx.obj
    try:
        settings = resolve_settings(
            load_config(defaults_path=opts["config_path"], local_path=opts["local_config"])
        )
        declarations = load_declarations(opts["makefile"])
    except ConfigError as exc:
        _fail_config(ctx, _config_payload(exc))
    return declarations, settings


def _parse_env(values: Tuple[str, ...]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="--env")
        env[key] = value
    return env


@click.group()
@click.version_option(__version__, prog_name="flowmake")
@click.option(
    "--file",
    "-f",
    "makefile",
    default=DEFAULT_DECLARATIONS_FILE,
    show_default=True,
    help="Task declarations file (TOML, YAML or JSON)",
)
@click.option("--config", "config_path", default=None, help="Engine settings file (YAML or JSON)")
@click.option("--local-config", default=None, help="Optional local settings overrides")
@click.pass_context
def cli(ctx, makefile, config_path, local_config):
    """flowmake - declarative task flows with dependency-ordered execution."""
    ctx.ensure_object(dict)
    ctx.obj.update(makefile=makefile, config_path=config_path, local_config=local_config)


@cli.command()
@click.argument("flow", required=False)
@click.option("--channel", default=None, help="Toolchain channel (stable, beta, nightly, ...)")
@click.option("--platform", default=None, help="Target platform (linux, mac, windows, ...)")
@click.option("--target", default=None, help="Target triple")
@click.option("--env", "-e", "env_values", multiple=True, help="Extra environment KEY=VALUE")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Max parallel tasks")
@click.option(
    "--continue-on-error/--no-continue-on-error",
    default=None,
    help="Run-level error tolerance (overrides task declarations)",
)
@click.option("--manifest", "manifest_path", default=None, help="Write the run manifest (JSON)")
@click.pass_context
def run(ctx, flow, channel, platform, target, env_values, jobs, continue_on_error, manifest_path):
    """Plan and execute FLOW (defaults to the declared default task)."""
    declarations, settings = _load(ctx)

    if jobs is not None:
        settings = dataclasses.replace(settings, concurrency=jobs)
    if manifest_path is not None:
        settings = dataclasses.replace(settings, manifest_path=manifest_path)

    context = ExecutionContext.from_environment(
        channel=channel,
        platform=platform,
        target=target,
        overrides=_parse_env(env_values),
    )
    flow = flow or declarations.default_task
    engine = Engine.from_declarations(declarations, settings=settings)

    try:
        result = engine.run(flow, context, continue_on_error=continue_on_error)
    except CycleError as exc:
        _fail_config(ctx, dependency_cycle(members=exc.members))
    except ConfigError as exc:
        _fail_config(ctx, _config_payload(exc))

    for ready in result.ready_sets:
        for name in sorted(ready):
            task_result = result.results.get(name)
            if task_result is None:
                click.secho(f"[flowmake] {name}: not dispatched", dim=True)
                continue
            line = f"[flowmake] {name}: {task_result.status.value} ({task_result.summary})"
            if task_result.status == TaskStatus.FAILED and task_result.tolerated:
                line += " [tolerated]"
            click.secho(line, fg=_STATUS_COLORS[task_result.status])

    if result.outcome == RunOutcome.FAILURE_TOLERATED:
        tolerated = ", ".join(result.names_with(TaskStatus.FAILED))
        click.secho(f"warning: flow '{flow}' completed with tolerated failures: {tolerated}", fg="yellow", err=True)
    elif result.outcome == RunOutcome.FAILURE:
        click.secho(f"error: flow '{flow}' failed", fg="red", err=True)

    ctx.exit(_OUTCOME_EXIT[result.outcome])


@cli.command()
@click.argument("flow", required=False)
@click.pass_context
def plan(ctx, flow):
    """Print the ready sets of FLOW without running anything."""
    declarations, settings = _load(ctx)
    flow = flow or declarations.default_task
    engine = Engine.from_declarations(declarations, settings=settings)

    try:
        ready_sets = engine.plan(flow)
    except CycleError as exc:
        _fail_config(ctx, dependency_cycle(members=exc.members))
    except ConfigError as exc:
        _fail_config(ctx, _config_payload(exc))

    for index, ready in enumerate(ready_sets, start=1):
        click.echo(f"{index}: {', '.join(sorted(ready))}")


@cli.command(name="list")
@click.pass_context
def list_tasks(ctx):
    """List the tasks of the effective registry, grouped by category."""
    declarations, _ = _load(ctx)
    try:
        registry = declarations.build_registry()
    except ConfigError as exc:
        _fail_config(ctx, _config_payload(exc))

    by_category = defaultdict(list)
    for task in registry.tasks():
        by_category[task.category or "No Category"].append(task)

    for category in sorted(by_category):
        click.echo(category)
        for task in sorted(by_category[category], key=lambda t: t.name):
            description = f" - {task.description}" if task.description else ""
            click.echo(f"  {task.name}{description}")


def main(argv: Optional[list] = None) -> None:
    cli.main(args=argv, prog_name="flowmake", obj={})


if __name__ == "__main__":  # pragma: no cover
    main()
