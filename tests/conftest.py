# tests/conftest.py
"""
Fixtures compartilhados para testes do flowmake.

Este módulo define fixtures reutilizáveis que fornecem:
- contextos de execução determinísticos (canal, plataforma, env)
- settings do engine com concorrência controlada
- uma fábrica de CommandTask mínima
- um runner fake que registra chamadas e simula falhas por tarefa

O objetivo destas fixtures é permitir testes do core (tasks, engine,
config e traceability) sem depender de:
- subprocessos reais
- variáveis de ambiente do processo
- arquivos de declaração em disco

Decisões arquiteturais:
    - O runner fake implementa o protocolo `CommandRunner` via duck typing
    - Fixtures que dependem do core fazem imports lazy para falhar com
      mensagens mais claras
    - Concorrência 1 é o padrão para tornar a ordem observável

Invariantes:
    - Nenhuma fixture executa comandos externos
    - Nenhuma fixture lê `os.environ`

Limites explícitos:
    - Não substituem os testes e2e (tests/e2e)
    - Não contêm lógica de domínio
"""

import threading
import time

import pytest


@pytest.fixture
def stable_ctx():
    """
    ExecutionContext de uma célula `stable` em linux, sem variáveis de ambiente.

    Returns:
        ExecutionContext: Contexto imutável e isolado do processo.
    """
    from flowmake.core.context import ExecutionContext

    return ExecutionContext(channel="stable", platform="linux", env={})


@pytest.fixture
def nightly_ctx():
    """ExecutionContext de uma célula `nightly` em linux."""
    from flowmake.core.context import ExecutionContext

    return ExecutionContext(channel="nightly", platform="linux", env={})


@pytest.fixture
def serial_settings():
    """EngineSettings com um único worker (ordem de execução observável)."""
    from flowmake.core.config.settings import EngineSettings

    return EngineSettings(concurrency=1)


@pytest.fixture
def CmdTask():
    """
    Fixture factory de CommandTask mínima.

    Retorna uma função `make(name, deps=(), **kwargs)` que constrói uma
    CommandTask com um único script inofensivo. O script nunca é executado
    nos testes que usam `FakeRunner`.

    Returns:
        Callable[..., CommandTask]
    """
    from flowmake.core.tasks.types import Command, CommandTask

    def make(name, deps=(), **kwargs):
        return CommandTask(
            name=name,
            commands=(Command(script=f"echo {name}"),),
            dependencies=tuple(deps),
            **kwargs,
        )

    return make


@pytest.fixture
def FlowOf():
    """Fixture factory de FlowTask: `make(name, deps)`."""
    from flowmake.core.tasks.types import FlowTask

    def make(name, deps=(), **kwargs):
        return FlowTask(name=name, dependencies=tuple(deps), **kwargs)

    return make


@pytest.fixture
def registry_of():
    """Constrói um TaskRegistry a partir de uma sequência de tarefas."""
    from flowmake.core.tasks.registry import TaskRegistry

    def make(*tasks):
        registry = TaskRegistry()
        for task in tasks:
            registry.register(task)
        return registry

    return make


@pytest.fixture
def FakeRunner():
    """
    Fixture factory que fornece um runner fake (duck-typed `CommandRunner`).

    O runner retornado:
    - registra a ordem em que as tarefas foram executadas (`calls`)
    - registra o contexto recebido por tarefa (`contexts`)
    - falha com `TaskFailed` para as tarefas em `fail` (nome → exit code)
    - levanta a exceção configurada para as tarefas em `raise_for`
    - pode dormir `delay` segundos por tarefa (testes de paralelismo)
    - mede o número máximo de tarefas simultâneas (`max_in_flight`)

    Invariantes:
        - Nunca executa comandos externos
        - É seguro para uso concorrente

    Returns:
        type: Classe _FakeRunner que pode ser instanciada pelos testes.
    """
    from flowmake.core.exceptions import TaskFailed

    class _FakeRunner:
        def __init__(self, fail=None, raise_for=None, delay=0.0):
            self.fail = dict(fail or {})
            self.raise_for = dict(raise_for or {})
            self.delay = delay
            self.calls = []
            self.contexts = {}
            self.in_flight = 0
            self.max_in_flight = 0
            self._lock = threading.Lock()

        def run(self, task, context):
            with self._lock:
                self.calls.append(task.name)
                self.contexts[task.name] = context
                self.in_flight += 1
                self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                if self.delay:
                    time.sleep(self.delay)
                if task.name in self.raise_for:
                    raise self.raise_for[task.name]
                if task.name in self.fail:
                    code = self.fail[task.name]
                    raise TaskFailed(
                        f"Task '{task.name}' exited with status {code}",
                        details={"task": task.name, "exit_code": code, "command_index": 0},
                    )
            finally:
                with self._lock:
                    self.in_flight -= 1

    return _FakeRunner


@pytest.fixture
def project_settings_defaults_yaml() -> str:
    """
    YAML de settings do projeto (defaults), semelhante a um `flowmake.yaml` real.

    Invariantes:
        - YAML sintaticamente válido
        - Contém apenas chaves conhecidas pelo resolvedor de settings

    Returns:
        str: Conteúdo YAML de defaults.
    """
    return """\
engine:
  concurrency: 4
  manifest_path: build/flowmake-manifest.json
matrix:
  fail_fast: true
tasks:
  coverage:
    enabled: true
"""


@pytest.fixture
def project_settings_local_yaml() -> str:
    """YAML de overrides locais (`flowmake.local.yaml`)."""
    return """\
engine:
  concurrency: 1
  continue_on_error: true
tasks:
  coverage:
    enabled: false
"""
