# src/atlas_deployflow/core/traceability/__init__.py
"""
Rastreabilidade do Atlas DeployFlow — Manifest de run (v1).

API pública:
    - RunManifest     → estrutura canônica do Manifest
    - create_manifest → criação explícita no início da run
    - add_event       → registro explícito no Event Log
    - stage_started / stage_finished / stage_skipped
    - run_finished
    - save_manifest / load_manifest → persistência JSON determinística

Nenhum evento é emitido implicitamente; a ordem do Event Log reflete a
ordem de chamada.
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    run_finished,
    save_manifest,
    stage_finished,
    stage_skipped,
    stage_started,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "load_manifest",
    "run_finished",
    "save_manifest",
    "stage_finished",
    "stage_skipped",
    "stage_started",
]
