# src/flowmake/core/config/settings.py
"""
Settings tipados do engine, materializados a partir da configuração resolvida.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from .errors import InvalidSettingsError
from .hashing import compute_config_hash
from .loader import DEFAULT_SETTINGS


@dataclass(frozen=True)
class EngineSettings:
    """
    Política de execução de uma run.

    Campos:
    - concurrency: tamanho máximo do pool de workers por ready set
    - continue_on_error: override de tolerância em nível de run
      (None = usar o valor declarado em cada tarefa)
    - manifest_path: onde salvar o Manifest da run (None = não salvar)
    - matrix_fail_fast: política de fail-fast consultada pelo driver de matriz
    - disabled_tasks: tarefas desabilitadas por configuração
    - config_hash: hash canônico da configuração de origem
    """

    concurrency: int = field(default_factory=lambda: os.cpu_count() or 1)
    continue_on_error: Optional[bool] = None
    manifest_path: Optional[str] = None
    matrix_fail_fast: bool = True
    disabled_tasks: FrozenSet[str] = frozenset()
    config_hash: str = ""

    def is_enabled(self, task_name: str) -> bool:
        return task_name not in self.disabled_tasks


def _section(config: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = config.get(key) or {}
    if not isinstance(value, dict):
        raise InvalidSettingsError(
            f"Section '{key}' must be a mapping",
            details={"section": key, "received": type(value).__name__},
        )
    return value


def _optional_bool(section: str, key: str, value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    raise InvalidSettingsError(
        f"Setting '{section}.{key}' must be a boolean or null",
        details={"setting": f"{section}.{key}", "received": repr(value)},
    )


def resolve_settings(config: Optional[Dict[str, Any]] = None) -> EngineSettings:
    """
    Valida a configuração resolvida e produz `EngineSettings`.

    Raises:
        InvalidSettingsError: Se algum valor tiver tipo ou domínio inválido.
    """
    config = config if config is not None else dict(DEFAULT_SETTINGS)

    engine_cfg = _section(config, "engine")
    matrix_cfg = _section(config, "matrix")
    tasks_cfg = _section(config, "tasks")

    concurrency = engine_cfg.get("concurrency")
    if concurrency is None:
        concurrency = os.cpu_count() or 1
    elif isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise InvalidSettingsError(
            "Setting 'engine.concurrency' must be a positive integer or null",
            details={"setting": "engine.concurrency", "received": repr(concurrency)},
        )

    manifest_path = engine_cfg.get("manifest_path")
    if manifest_path is not None and not isinstance(manifest_path, str):
        raise InvalidSettingsError(
            "Setting 'engine.manifest_path' must be a string or null",
            details={"setting": "engine.manifest_path", "received": repr(manifest_path)},
        )

    fail_fast = _optional_bool("matrix", "fail_fast", matrix_cfg.get("fail_fast", True))

    disabled = set()
    for name, task_cfg in tasks_cfg.items():
        task_cfg = task_cfg or {}
        if not isinstance(task_cfg, dict):
            raise InvalidSettingsError(
                f"Settings for task '{name}' must be a mapping",
                details={"task": name},
            )
        enabled = _optional_bool(f"tasks.{name}", "enabled", task_cfg.get("enabled", True))
        if enabled is False:
            disabled.add(name)

    return EngineSettings(
        concurrency=concurrency,
        continue_on_error=_optional_bool(
            "engine", "continue_on_error", engine_cfg.get("continue_on_error")
        ),
        manifest_path=manifest_path,
        matrix_fail_fast=True if fail_fast is None else fail_fast,
        disabled_tasks=frozenset(disabled),
        config_hash=compute_config_hash(config),
    )
