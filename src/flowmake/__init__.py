# src/flowmake/__init__.py
"""
flowmake — orquestrador declarativo de tarefas.

Este pacote raiz define o namespace público do flowmake: um engine que
lê declarações de tarefas (comandos e flows), resolve o grafo de
dependências de um flow solicitado em ready sets e executa esses sets
com paralelismo limitado e política de erro explícita.

Arquitetura em alto nível:
    - core.tasks        → modelo de tarefas, registry, condições e declarações
    - core.config       → carregamento, merge e hashing de configuração
    - core.engine       → composer, planner (ready sets), executor e matrix
    - core.traceability → Manifest e Event Log de cada run
    - cli               → interface de linha de comando (click)

Limites explícitos:
    - Não interpreta o corpo dos comandos (apenas o status de saída)
    - Não mantém cache de resultados entre runs
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
