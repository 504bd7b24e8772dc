# src/flowmake/core/config/loader.py
"""
Loader canônico de configuração (settings) do flowmake.

A configuração efetiva do engine é resolvida a partir de:
    - defaults embutidos (`DEFAULT_SETTINGS`)
    - um arquivo de defaults do projeto (opcional; obrigatório se informado)
    - um arquivo local de overrides (opcional; ignorado se ausente)

Responsabilidades do módulo:
    - Carregar arquivos em YAML ou JSON
    - Validar requisitos estruturais mínimos (tipo raiz)
    - Resolver a configuração final via deep-merge determinístico
    - Garantir precedência explícita do override local sobre defaults

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults

Limites explícitos:
    - Não lê declarações de tarefas (ver `flowmake.core.tasks.declarations`)
    - Não interage com Engine ou Executor
"""

from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from .merge import deep_merge
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    MalformedConfigError,
    UnsupportedConfigFormatError,
)


DEFAULT_SETTINGS: Dict[str, Any] = {
    "engine": {
        "concurrency": None,
        "continue_on_error": None,
        "manifest_path": None,
    },
    "matrix": {
        "fail_fast": True,
    },
    "tasks": {},
}


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        MalformedConfigError: Se o conteúdo não for YAML/JSON válido em UTF-8.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(
            f"Arquivo de configuração não encontrado: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()

    if suffix not in {".yaml", ".yml", ".json"}:
        raise UnsupportedConfigFormatError(
            f"Formato não suportado: {path.suffix}",
            details={"path": str(path)},
        )

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedConfigError(
            f"Arquivo de configuração inválido: {path}",
            details={"path": str(path), "reason": str(exc)},
        ) from exc

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}",
            details={"path": str(path)},
        )

    return data


def load_config(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva do engine.

    Política de resolução:
        - `DEFAULT_SETTINGS` é sempre a base
        - O arquivo de defaults, quando informado, deve existir
        - O arquivo local é opcional e, quando presente, tem prioridade

    Args:
        defaults_path (Optional[str]): Caminho para o arquivo de defaults do projeto.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults informado não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        MalformedConfigError: Se o conteúdo não for YAML/JSON válido em UTF-8.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """

    effective = deep_merge(DEFAULT_SETTINGS, {})

    if defaults_path is not None:
        effective = deep_merge(effective, _load_file(Path(defaults_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return effective
