# src/flowmake/core/traceability/__init__.py
"""
Pacote de rastreabilidade (traceability) do flowmake — Manifest v1.

API pública exposta:
    - RunManifest     → estrutura canônica do Manifest
    - create_manifest → criação explícita do Manifest
    - add_event       → registro explícito de eventos no Event Log
    - task_started    → marca início de execução de uma tarefa
    - task_finished   → registra estado terminal (succeeded/failed/skipped)
    - task_cancelled  → registra tarefa não despachada
    - save_manifest   → persistência do Manifest em JSON
    - load_manifest   → restauração determinística do Manifest
"""

from .manifest import (
    RunManifest,
    create_manifest,
    add_event,
    task_started,
    task_finished,
    task_cancelled,
    save_manifest,
    load_manifest,
)

__all__ = [
    "RunManifest",
    "create_manifest",
    "add_event",
    "task_started",
    "task_finished",
    "task_cancelled",
    "save_manifest",
    "load_manifest",
]
