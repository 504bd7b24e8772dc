# src/flowmake/core/engine/matrix.py
"""
Driver de múltiplas runs (células de uma matriz de CI).

Cada célula possui seu próprio ExecutionContext e seu próprio mapa de
resultados; nenhuma estrutura mutável é compartilhada além do sinal de
cancelamento.

Fail-fast global:
    - habilitado: a primeira célula com desfecho FAILURE sinaliza um
      `threading.Event`; células ainda não iniciadas são recusadas e
      reportadas como canceladas (células em andamento terminam)
    - desabilitado: todas as células executam e os resultados são agregados

Manifests:
    - com `settings.manifest_path` definido, cada célula grava o próprio
      arquivo, com o nome da célula antes da extensão
      (`build/manifest.json` → `build/manifest.linux-stable.json`)
"""

from __future__ import annotations

import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from flowmake.core.context import ExecutionContext
from flowmake.core.exceptions import RunRefusedError
from flowmake.core.tasks.types import RunOutcome

from .engine import Engine
from .executor import RunResult


@dataclass(frozen=True)
class MatrixCell:
    """Uma célula: nome, contexto e tolerância opcional em nível de run."""

    name: str
    context: ExecutionContext
    continue_on_error: Optional[bool] = None


@dataclass
class MatrixResult:
    runs: Dict[str, RunResult] = field(default_factory=dict)
    cancelled: List[str] = field(default_factory=list)

    @property
    def outcome(self) -> RunOutcome:
        outcomes = [r.outcome for r in self.runs.values()]
        if RunOutcome.FAILURE in outcomes:
            return RunOutcome.FAILURE
        if RunOutcome.FAILURE_TOLERATED in outcomes:
            return RunOutcome.FAILURE_TOLERATED
        return RunOutcome.SUCCESS


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def cell_manifest_path(base: str, cell: str) -> str:
    """Caminho do manifest de uma célula: o nome da célula é inserido antes da extensão."""
    path = Path(base)
    tag = _UNSAFE_CHARS.sub("_", cell) or "_"
    return str(path.with_name(f"{path.stem}.{tag}{path.suffix}"))


def run_matrix(
    engine: Engine,
    flow: str,
    cells: Sequence[MatrixCell],
    *,
    fail_fast: Optional[bool] = None,
    max_parallel: int = 1,
) -> MatrixResult:
    """
    Executa `flow` uma vez por célula.

    Args:
        engine: Engine compartilhado (registry congelado, somente leitura).
        flow: Flow solicitado.
        cells: Células da matriz.
        fail_fast: Política global; None usa `engine.settings.matrix_fail_fast`.
        max_parallel: Número máximo de células simultâneas.
    """
    if fail_fast is None:
        fail_fast = engine.settings.matrix_fail_fast

    base_manifest = engine.settings.manifest_path
    signal = threading.Event()
    result = MatrixResult()
    lock = threading.Lock()

    def _run_cell(cell: MatrixCell) -> None:
        try:
            run = engine.run(
                flow,
                cell.context,
                cancel_event=signal if fail_fast else None,
                continue_on_error=cell.continue_on_error,
                manifest_path=(
                    cell_manifest_path(base_manifest, cell.name) if base_manifest else None
                ),
            )
        except RunRefusedError:
            with lock:
                result.cancelled.append(cell.name)
            return

        with lock:
            result.runs[cell.name] = run
        if fail_fast and run.outcome == RunOutcome.FAILURE:
            signal.set()

    # O plano é validado uma vez antes de qualquer célula.
    engine.plan(flow)

    with ThreadPoolExecutor(max_workers=max(1, max_parallel)) as pool:
        for future in [pool.submit(_run_cell, cell) for cell in cells]:
            future.result()

    return result
