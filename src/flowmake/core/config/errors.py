# src/flowmake/core/config/errors.py
"""
Exceções da camada de configuração (settings) do flowmake.

Este módulo define as exceções levantadas durante o carregamento e a
resolução das configurações do engine (concorrência, tolerância em nível
de run, caminho do manifest, tarefas desabilitadas).

Todas herdam de `ConfigError`, de modo que a CLI as trata exatamente
como declarações inválidas: fatais, reportadas antes de qualquer
execução, com código de saída de configuração.

Limites explícitos:
    - Não executa tarefas
    - Não realiza fallback ou recovery
    - Não depende de Engine ou Registry
"""

from dataclasses import dataclass

from flowmake.core.exceptions import ConfigError


@dataclass(eq=False)
class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de configuração explicitamente informado não existe.

    Decisões arquiteturais:
        - Um caminho de defaults informado é obrigatório
        - Não há tentativa de inferir ou criar o arquivo
    """


@dataclass(eq=False)
class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


@dataclass(eq=False)
class MalformedConfigError(ConfigError):
    """
    Arquivo de configuração ilegível: sintaxe YAML/JSON inválida ou bytes
    que não decodificam como UTF-8.

    O erro do parser é preservado em `details["reason"]`.
    """


@dataclass(eq=False)
class InvalidConfigRootTypeError(ConfigError):
    """
    Conteúdo raiz da configuração não é um dicionário (`dict`).

    Listas ou valores escalares no root são rejeitados sem normalização.
    """


@dataclass(eq=False)
class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"concurrency": 4}}
        - override: {"engine": "fast"}

    Nenhum merge parcial é produzido em caso de conflito.
    """


@dataclass(eq=False)
class InvalidSettingsError(ConfigError):
    """
    Valor de setting com tipo ou domínio inválido (ex.: `concurrency: 0`).

    A validação ocorre ao materializar `EngineSettings`, antes da run.
    """
