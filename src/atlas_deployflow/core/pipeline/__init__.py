# src/atlas_deployflow/core/pipeline/__init__.py
"""
# Pipeline Core — Atlas DeployFlow

Contratos e estruturas fundamentais de um pipeline de entrega.

Um pipeline é uma lista ordenada de **descritores de Stage**; cada Stage
declara as chaves de contexto que consome e produz, sua política de falha
e um predicado puro de habilitação. O grafo de dados resultante é uma
cadeia: inputs de um Stage são sempre outputs de Stages anteriores.

## Componentes

- **types**: `FailurePolicy`, `StageStatus`, `RunStatus`, `RunState`,
  `StageOutcome`, `PipelineResult`
- **stage**: `Stage` (descritor), `StageCall`, predicados de habilitação
- **context**: `PipelineContext` (outputs write-once, log estruturado)
- **registry**: `StageRegistry` (validação de assembly)
- **cancellation**: `CancellationToken`

## Invariantes

- Nomes de Stage são únicos em um pipeline
- Cada chave de output é produzida por exatamente um Stage
- O contexto pertence a uma única run e nunca é compartilhado
"""

from .cancellation import CancellationToken
from .context import PipelineContext
from .registry import (
    DuplicateOutputKeyError,
    DuplicateStageNameError,
    PipelineAssemblyError,
    StageRegistry,
    UnknownInputKeyError,
)
from .stage import Stage, StageCall, always_enabled, config_flag, stage_toggle
from .types import (
    FailurePolicy,
    PipelineResult,
    RunState,
    RunStatus,
    StageOutcome,
    StageStatus,
)

__all__ = [
    "CancellationToken",
    "DuplicateOutputKeyError",
    "DuplicateStageNameError",
    "FailurePolicy",
    "PipelineAssemblyError",
    "PipelineContext",
    "PipelineResult",
    "RunState",
    "RunStatus",
    "Stage",
    "StageCall",
    "StageOutcome",
    "StageRegistry",
    "StageStatus",
    "UnknownInputKeyError",
    "always_enabled",
    "config_flag",
    "stage_toggle",
]
