# src/flowmake/core/context.py
"""
ExecutionContext — ambiente somente leitura de uma run do flowmake.

O contexto descreve a célula de execução (ex.: uma célula da matriz de CI):
    - channel: canal do toolchain (ex.: stable, beta, nightly)
    - platform: plataforma alvo (linux, mac, windows, ...)
    - target: triple alvo (opcional)
    - env: variáveis de ambiente observáveis pelas condições e comandos

Princípios fundamentais:
    - Criado uma única vez por invocação, antes da resolução
    - Nunca mutado durante a execução; tarefas apenas o observam
    - Nenhum estado global: cada run recebe seu próprio contexto
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


DEFAULT_CHANNEL = "stable"

CHANNEL_ENV = "FLOWMAKE_CHANNEL"
PLATFORM_ENV = "FLOWMAKE_PLATFORM"
TARGET_ENV = "FLOWMAKE_TARGET"


def detect_platform() -> str:
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "darwin":
        return "mac"
    if sys.platform in ("win32", "cygwin"):
        return "windows"
    return sys.platform


@dataclass(frozen=True)
class ExecutionContext:
    """
    Contexto de execução imutável de uma run.

    Invariantes:
        - `env` é exposto como mapping somente leitura
        - `with_env` devolve um novo contexto; o original permanece intacto
    """

    channel: str = DEFAULT_CHANNEL
    platform: str = field(default_factory=detect_platform)
    target: Optional[str] = None
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        channel: Optional[str] = None,
        platform: Optional[str] = None,
        target: Optional[str] = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> "ExecutionContext":
        """
        Constrói o contexto a partir do ambiente do processo.

        Valores explícitos têm prioridade sobre `FLOWMAKE_CHANNEL`,
        `FLOWMAKE_PLATFORM` e `FLOWMAKE_TARGET`; `overrides` é aplicado
        por cima do ambiente.
        """
        base = dict(os.environ if environ is None else environ)
        base.update(overrides or {})

        return cls(
            channel=channel or base.get(CHANNEL_ENV) or DEFAULT_CHANNEL,
            platform=platform or base.get(PLATFORM_ENV) or detect_platform(),
            target=target or base.get(TARGET_ENV) or None,
            env=base,
        )

    def with_env(self, extra: Mapping[str, str]) -> "ExecutionContext":
        """Novo contexto com `extra` sobreposto ao ambiente atual."""
        merged = dict(self.env)
        merged.update(extra)
        return ExecutionContext(
            channel=self.channel,
            platform=self.platform,
            target=self.target,
            env=merged,
        )

    def describe(self) -> dict:
        return {
            "channel": self.channel,
            "platform": self.platform,
            "target": self.target,
        }
