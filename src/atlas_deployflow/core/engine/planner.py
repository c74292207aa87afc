# src/atlas_deployflow/core/engine/planner.py
"""
Planejador (assembly) do pipeline.

O grafo de dados do pipeline é uma cadeia: a ordem de execução é a
própria ordem de declaração. O planner não reordena nada; ele apenas
garante, antes de qualquer execução, que a declaração é válida.

Validações:
    - nomes de Stage únicos               → DuplicateStageNameError
    - chaves de output únicas             → DuplicateOutputKeyError
    - inputs produzidos por Stage anterior → UnknownInputKeyError

Limites explícitos:
    - Não executa Stages
    - Não avalia predicados de habilitação
"""

from __future__ import annotations

from typing import Iterable, List

from atlas_deployflow.core.pipeline.registry import StageRegistry
from atlas_deployflow.core.pipeline.stage import Stage


def plan_execution(stages: Iterable[Stage]) -> List[Stage]:
    """
    Valida a declaração do pipeline e devolve a ordem de execução.

    Raises:
        PipelineAssemblyError: (ou subclasses) em qualquer violação estrutural.
    """
    return StageRegistry.of(stages).list()
