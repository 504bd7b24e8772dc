# src/flowmake/core/tasks/declarations.py
"""
Loader de declarações de tarefas e flows.

Este módulo lê um manifesto declarativo (no estilo `Makefile.toml`) e o
converte em tarefas fortemente tipadas (`CommandTask` / `FlowTask`),
registradas em um `TaskRegistry` de usuário.

Formatos suportados (v1):
    - TOML (.toml)
    - YAML (.yaml, .yml)
    - JSON (.json)

Estrutura do documento:
    [config]  → skip_core_tasks (bool), default_task (str)
    [env]     → variáveis extras para todos os comandos
    [tasks.*] → uma tabela por tarefa

Decisões arquiteturais:
    - Chaves desconhecidas são erro (nenhuma chave é ignorada em silêncio)
    - Uma tarefa sem `script`/`command` é um flow
    - `ignore_errors` é aceito como sinônimo de `continue_on_error`
    - O documento normalizado é hasheado para o Manifest

Limites explícitos:
    - Não valida referências entre tarefas (responsabilidade do planner)
    - Não executa comandos
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml  # PyYAML

from flowmake.core.config.errors import UnsupportedConfigFormatError
from flowmake.core.config.hashing import compute_config_hash
from flowmake.core.exceptions import DeclarationsNotFoundError, MalformedDeclarationError

from .builtin import DEFAULT_TASK, base_registry
from .registry import TaskRegistry
from .types import Command, CommandTask, Condition, FlowTask, Task


DEFAULT_DECLARATIONS_FILE = "Makefile.toml"

_TOP_LEVEL_KEYS = {"config", "env", "tasks"}
_CONFIG_KEYS = {"skip_core_tasks", "default_task"}
_TASK_KEYS = {
    "description",
    "category",
    "workspace",
    "clear",
    "script",
    "command",
    "args",
    "cwd",
    "dependencies",
    "condition",
    "continue_on_error",
    "ignore_errors",
    "disabled",
    "requires_success",
    "env",
}
_CONDITION_LIST_KEYS = (
    "channels",
    "not_channels",
    "platforms",
    "targets",
    "env_set",
    "env_not_set",
    "env_true",
    "env_false",
)
_COMMAND_KEYS = {"script", "command", "args", "cwd"}


@dataclass(frozen=True)
class Declarations:
    """
    Resultado do carregamento de um manifesto de tarefas.

    Campos:
        - registry: camada de usuário (ainda não sobreposta aos flows embutidos)
        - env: variáveis globais declaradas em `[env]`
        - skip_core_tasks: não sobrepor aos flows embutidos
        - default_task: tarefa usada quando nenhuma é solicitada
        - root_dir: diretório base para `cwd` relativos
        - declarations_hash: hash canônico do documento
    """

    registry: TaskRegistry
    env: Mapping[str, str] = field(default_factory=dict)
    skip_core_tasks: bool = False
    default_task: str = DEFAULT_TASK
    root_dir: Path = field(default_factory=Path.cwd)
    declarations_hash: str = ""

    def build_registry(self) -> TaskRegistry:
        """Registry efetivo: flows embutidos sobrepostos pelas declarações do usuário."""
        if self.skip_core_tasks:
            return TaskRegistry.layered(TaskRegistry(), self.registry)
        return TaskRegistry.layered(base_registry(), self.registry)


# ---------------------------------------------------------------------------
# Validadores de valores
# ---------------------------------------------------------------------------

def _malformed(where: str, message: str, **details: Any) -> MalformedDeclarationError:
    return MalformedDeclarationError(
        f"{where}: {message}",
        details={"where": where, **details},
    )


def _as_str(where: str, value: Any) -> str:
    if not isinstance(value, str):
        raise _malformed(where, "expected a string", received=type(value).__name__)
    return value


def _as_bool(where: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise _malformed(where, "expected a boolean", received=type(value).__name__)
    return value


def _as_str_list(where: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise _malformed(where, "expected a list of strings")
    return tuple(value)


def _as_str_map(where: str, value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise _malformed(where, "expected a table of strings")
    out: Dict[str, str] = {}
    for key, item in value.items():
        if isinstance(item, bool):
            item = "true" if item else "false"
        elif isinstance(item, (int, float)):
            item = str(item)
        out[str(key)] = _as_str(f"{where}.{key}", item)
    return out


def _check_keys(where: str, data: Mapping[str, Any], allowed: set) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise _malformed(where, f"unknown keys {unknown}", unknown=unknown)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_condition(where: str, data: Any) -> Condition:
    if not isinstance(data, dict):
        raise _malformed(where, "condition must be a table")
    _check_keys(where, data, set(_CONDITION_LIST_KEYS) | {"env"})

    kwargs: Dict[str, Any] = {
        key: _as_str_list(f"{where}.{key}", data[key])
        for key in _CONDITION_LIST_KEYS
        if key in data
    }
    if "env" in data:
        kwargs["env"] = _as_str_map(f"{where}.env", data["env"])
    return Condition(**kwargs)


def _parse_command_entry(where: str, entry: Any) -> Command:
    if isinstance(entry, str):
        return Command(script=entry)
    if not isinstance(entry, dict):
        raise _malformed(where, "script entry must be a string or a table")
    _check_keys(where, entry, _COMMAND_KEYS)

    cwd = _as_str(f"{where}.cwd", entry["cwd"]) if "cwd" in entry else None
    if "script" in entry:
        if "command" in entry or "args" in entry:
            raise _malformed(where, "use either 'script' or 'command'/'args'")
        return Command(script=_as_str(f"{where}.script", entry["script"]), cwd=cwd)
    if "command" in entry:
        argv = (_as_str(f"{where}.command", entry["command"]),)
        argv += _as_str_list(f"{where}.args", entry.get("args", []))
        return Command(argv=argv, cwd=cwd)
    raise _malformed(where, "entry needs 'script' or 'command'")


def parse_task(name: str, data: Any) -> Task:
    """Converte uma tabela de declaração em `CommandTask` ou `FlowTask`."""
    where = f"tasks.{name}"
    if not isinstance(data, dict):
        raise _malformed(where, "task declaration must be a table")
    _check_keys(where, data, _TASK_KEYS)

    if "continue_on_error" in data and "ignore_errors" in data:
        raise _malformed(where, "declare only one of 'continue_on_error' and 'ignore_errors'")
    tolerance_key = "ignore_errors" if "ignore_errors" in data else "continue_on_error"

    common: Dict[str, Any] = dict(
        name=name,
        description=_as_str(f"{where}.description", data.get("description", "")),
        category=_as_str(f"{where}.category", data.get("category", "")),
        workspace_scope=_as_bool(f"{where}.workspace", data.get("workspace", False)),
        clear=_as_bool(f"{where}.clear", data.get("clear", False)),
        dependencies=_as_str_list(f"{where}.dependencies", data.get("dependencies", [])),
        condition=(
            parse_condition(f"{where}.condition", data["condition"])
            if "condition" in data
            else None
        ),
        continue_on_error=_as_bool(f"{where}.{tolerance_key}", data.get(tolerance_key, False)),
        disabled=_as_bool(f"{where}.disabled", data.get("disabled", False)),
        requires_success=_as_bool(
            f"{where}.requires_success", data.get("requires_success", False)
        ),
        env=_as_str_map(f"{where}.env", data.get("env", {})),
    )

    commands: List[Command] = []
    if "script" in data and "command" in data:
        raise _malformed(where, "use either 'script' or 'command'/'args'")
    if "args" in data and "command" not in data:
        raise _malformed(where, "'args' requires 'command'")

    if "script" in data:
        script = data["script"]
        entries = script if isinstance(script, list) else [script]
        for i, entry in enumerate(entries):
            commands.append(_parse_command_entry(f"{where}.script[{i}]", entry))
    elif "command" in data:
        commands.append(
            _parse_command_entry(where, {"command": data["command"], "args": data.get("args", [])})
        )

    cwd = _as_str(f"{where}.cwd", data["cwd"]) if "cwd" in data else None

    if commands:
        return CommandTask(commands=tuple(commands), cwd=cwd, **common)
    if cwd is not None:
        raise _malformed(where, "'cwd' is only valid for tasks with commands")
    return FlowTask(**common)


def parse_declarations(
    document: Any,
    *,
    root_dir: Optional[Path] = None,
) -> Declarations:
    """
    Converte um documento já carregado (dict) em `Declarations`.

    Raises:
        MalformedDeclarationError: Estrutura ou valores inválidos.
        DuplicateNameError: Nome de tarefa repetido sem `clear`.
    """
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise _malformed("<root>", "declarations root must be a table")
    _check_keys("<root>", document, _TOP_LEVEL_KEYS)

    config = document.get("config", {}) or {}
    if not isinstance(config, dict):
        raise _malformed("config", "expected a table")
    _check_keys("config", config, _CONFIG_KEYS)

    tasks = document.get("tasks", {}) or {}
    if not isinstance(tasks, dict):
        raise _malformed("tasks", "expected a table of tasks")

    registry = TaskRegistry()
    for name, data in tasks.items():
        registry.register(parse_task(str(name), data))

    return Declarations(
        registry=registry,
        env=_as_str_map("env", document.get("env", {}) or {}),
        skip_core_tasks=_as_bool("config.skip_core_tasks", config.get("skip_core_tasks", False)),
        default_task=_as_str("config.default_task", config.get("default_task", DEFAULT_TASK)),
        root_dir=root_dir if root_dir is not None else Path.cwd(),
        declarations_hash=compute_config_hash(document),
    )


def _read_document(path: Path) -> Any:
    suffix = path.suffix.lower()

    if suffix == ".toml":
        with path.open("rb") as f:
            try:
                return tomllib.load(f)
            except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
                raise _malformed(str(path), f"invalid TOML: {exc}") from exc

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            try:
                return yaml.safe_load(f)
            except (yaml.YAMLError, UnicodeDecodeError) as exc:
                raise _malformed(str(path), f"invalid YAML: {exc}") from exc

    if suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise _malformed(str(path), f"invalid JSON: {exc}") from exc

    raise UnsupportedConfigFormatError(
        f"Formato não suportado: {path.suffix}",
        details={"path": str(path)},
    )


def load_declarations(path: str) -> Declarations:
    """
    Carrega um manifesto de tarefas do disco.

    `cwd` relativos dos comandos são resolvidos a partir do diretório do arquivo.

    Raises:
        DeclarationsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        MalformedDeclarationError: Se o conteúdo for inválido.
    """
    file = Path(path)
    if not file.exists():
        raise DeclarationsNotFoundError(
            f"Arquivo de declarações não encontrado: {file}",
            details={"path": str(file)},
        )
    return parse_declarations(_read_document(file), root_dir=file.resolve().parent)
