# src/atlas_deployflow/core/engine/__init__.py
"""
Engine do Atlas DeployFlow.

Responsável por **montar** (assembly) e **executar** o pipeline:
    - planner  → validação estrutural antes de qualquer execução
    - executor → loop genérico, sequencial, com política FATAL/ADVISORY

Invariantes:
    - Stages executam estritamente na ordem de declaração
    - Cada Stage é tentado no máximo uma vez por run (sem retry)
    - O resultado enumera o desfecho de todos os Stages declarados
"""

from .executor import StageExecutor
from .planner import plan_execution

__all__ = ["StageExecutor", "plan_execution"]
