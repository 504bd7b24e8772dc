# src/flowmake/core/config/__init__.py
"""
Camada de configuração do flowmake.

Este pacote carrega, mescla, valida e identifica (hash) as configurações
de execução do engine, separadas das declarações de tarefas.

Componentes:
    - loader   → carregamento de YAML/JSON (defaults + override local)
    - merge    → deep-merge determinístico e estritamente tipado
    - hashing  → hash canônico para rastreabilidade no Manifest
    - settings → `EngineSettings` tipado e validado

Princípios fundamentais:
    - Configuração não contém lógica de tarefas
    - Overrides são sempre explícitos
    - A mesma entrada sempre produz a mesma configuração final
"""

from .loader import DEFAULT_SETTINGS, load_config
from .settings import EngineSettings, resolve_settings

__all__ = ["DEFAULT_SETTINGS", "load_config", "EngineSettings", "resolve_settings"]
