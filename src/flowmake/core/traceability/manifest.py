# src/flowmake/core/traceability/manifest.py
"""
Manifest v1 — rastreabilidade de runs do flowmake.

Este módulo define a estrutura e as operações canônicas do Manifest,
o registro estruturado de uma run:
    - metadados da run (run_id, flow, started_at, versão, contexto)
    - hashes das entradas (settings e declarações)
    - estado incremental de cada tarefa
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem das chamadas
    - O Manifest é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico
    - A sincronização entre workers é responsabilidade do chamador (Executor)

Limites explícitos:
    - Não executa tarefas
    - Não decide políticas de execução
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps timezone-naive são assumidos como UTC; os demais são convertidos."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    """Duração em milissegundos, nunca negativa."""
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunManifest:
    """
    Manifest v1 — registro estruturado de uma run.

    Campos principais:
        - run: metadados da execução
        - inputs: hashes de settings e declarações
        - tasks: estado incremental por nome de tarefa
        - events: Event Log ordenado

    Invariantes:
        - `tasks` é sempre um dicionário indexado por nome de tarefa
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável em JSON
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    tasks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável, independente do estado interno."""
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "tasks": {k: dict(v) for k, v in self.tasks.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        """Reconstrução permissiva: campos ausentes viram estruturas vazias."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            tasks={k: dict(v) for k, v in (data.get("tasks", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    def event_types(self) -> List[str]:
        return [e["event_type"] for e in self.events]


def create_manifest(
    *,
    run_id: str,
    flow: str,
    started_at: datetime,
    flowmake_version: str,
    config_hash: str,
    declarations_hash: str,
    context: Optional[Dict[str, Any]] = None,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    ⚠️ Importante: esta função **não emite eventos implicitamente**.
    O Event Log inicia vazio.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "flow": flow,
            "started_at": _iso(started_at),
            "flowmake_version": flowmake_version,
            "context": dict(context or {}),
        },
        inputs={
            "config_hash": config_hash,
            "declarations_hash": declarations_hash,
        },
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: Optional[datetime] = None,
    task: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Acrescenta um evento explícito ao Event Log."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts or _now())}
    if task is not None:
        ev["task"] = task
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def task_started(manifest: RunManifest, *, task: str, kind: str, ts: Optional[datetime] = None) -> None:
    """Marca a tarefa como `running` e registra `task_started`."""
    ts = ts or _now()
    manifest.tasks.setdefault(task, {})
    manifest.tasks[task].update(
        {
            "task": task,
            "kind": kind,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="task_started", ts=ts, task=task, payload={"kind": kind})


def task_finished(
    manifest: RunManifest,
    *,
    task: str,
    result: Dict[str, Any],
    ts: Optional[datetime] = None,
) -> None:
    """
    Registra o estado terminal de uma tarefa.

    O tipo do evento deriva do status: `task_succeeded`, `task_failed`
    ou `task_skipped`.
    """
    ts = ts or _now()
    s = manifest.tasks.setdefault(task, {"task": task})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    status = result.get("status", "succeeded")
    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "summary": result.get("summary", ""),
            "tolerated": bool(result.get("tolerated", False)),
        }
    )
    if result.get("exit_code") is not None:
        s["exit_code"] = result["exit_code"]
    if result.get("error"):
        s["error"] = result["error"]

    payload: Dict[str, Any] = {"status": status, "duration_ms": s["duration_ms"]}
    if status == "failed":
        payload["tolerated"] = s["tolerated"]
    elif status == "skipped":
        payload["reason"] = s["summary"]

    add_event(manifest, event_type=f"task_{status}", ts=ts, task=task, payload=payload)


def task_cancelled(manifest: RunManifest, *, task: str, ts: Optional[datetime] = None) -> None:
    """Tarefa não despachada porque a run foi abortada."""
    ts = ts or _now()
    manifest.tasks.setdefault(task, {"task": task})
    manifest.tasks[task].update({"status": "cancelled", "finished_at": _iso(ts)})
    add_event(manifest, event_type="task_cancelled", ts=ts, task=task)


def save_manifest(manifest: RunManifest, path: Path) -> None:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
