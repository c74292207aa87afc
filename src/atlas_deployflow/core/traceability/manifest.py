# src/atlas_deployflow/core/traceability/manifest.py
"""
Manifest v1 — rastreabilidade de execuções no Atlas DeployFlow.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, ambiente, versão do framework)
    - hash da configuração efetiva
    - estado incremental de cada Stage
    - Event Log ordenado

Decisões arquiteturais:
    - UTC é o timezone canônico
    - O formato de persistência é JSON com chaves ordenadas
    - O Manifest nunca contém valores de segredos: apenas status,
      mensagens e contagens

Limites explícitos:
    - Não decide políticas de execução
    - Não é persistido automaticamente pelo Engine
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza timestamps para timezone-aware em UTC (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    delta = _ensure_tzaware_utc(end) - _ensure_tzaware_utc(start)
    return max(0, int(delta.total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Estrutura canônica do Manifest.

    Campos:
        - run: metadados da run
        - inputs: hashes de entrada (config_hash)
        - stages: estado por Stage, indexado pelo nome
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "stages": {k: dict(v) for k, v in self.stages.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            stages={k: dict(v) for k, v in (data.get("stages", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    deployflow_version: str,
    config_hash: Optional[str],
    environment: Optional[str] = None,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    O Event Log inicia vazio: `run_started` deve ser registrado
    explicitamente pelo chamador via `add_event`.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "deployflow_version": deployflow_version,
            "environment": environment,
        },
        inputs={"config_hash": config_hash},
        stages={},
        events=[],
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    stage: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona exatamente um evento ao Event Log, preservando a ordem de chamada."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if stage is not None:
        ev["stage"] = stage
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def stage_started(manifest: RunManifest, *, stage: str, policy: str, ts: datetime) -> None:
    """Marca o Stage como `running` e registra `stage_started`."""
    manifest.stages.setdefault(stage, {})
    manifest.stages[stage].update(
        {
            "stage": stage,
            "policy": policy,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="stage_started", ts=ts, stage=stage, payload={"policy": policy})


def stage_finished(
    manifest: RunManifest,
    *,
    stage: str,
    ts: datetime,
    status: str,
    message: str = "",
    error: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Registra a conclusão (sucesso ou falha) de um Stage.

    A duração é calculada a partir de `started_at` quando disponível.
    """
    s = manifest.stages.setdefault(stage, {"stage": stage})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "message": message,
        }
    )
    if error is not None:
        s["error"] = error

    payload: Dict[str, Any] = {"status": status, "duration_ms": s["duration_ms"]}
    if error is not None:
        payload["error_type"] = error.get("type")
    add_event(manifest, event_type="stage_finished", ts=ts, stage=stage, payload=payload)


def stage_skipped(manifest: RunManifest, *, stage: str, ts: datetime, reason: str) -> None:
    manifest.stages[stage] = {
        "stage": stage,
        "status": "skipped",
        "duration_ms": 0,
        "message": reason,
    }
    add_event(manifest, event_type="stage_skipped", ts=ts, stage=stage, payload={"reason": reason})


def run_finished(manifest: RunManifest, *, ts: datetime, status: str) -> None:
    manifest.run["finished_at"] = _iso(ts)
    manifest.run["status"] = status
    add_event(manifest, event_type="run_finished", ts=ts, payload={"status": status})


def save_manifest(manifest: Union[RunManifest, Dict[str, Any]], path: Union[str, Path]) -> Path:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas, UTF-8)."""
    data = manifest.to_dict() if isinstance(manifest, RunManifest) else dict(manifest)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(data, ensure_ascii=False, sort_keys=True, indent=2) + "\n",
        encoding="utf-8",
    )
    return p


def load_manifest(path: Union[str, Path]) -> RunManifest:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
