# src/atlas_deployflow/core/pipeline/registry.py
"""
Registro estrutural de Stages do pipeline.

O `StageRegistry` valida a integridade do pipeline no momento do
assembly, antes de qualquer execução:
    - nomes de Stage são únicos
    - cada chave de output é declarada por um único Stage
    - cada input é produzido por um Stage registrado **antes**

Invariantes:
    - A lista de Stages reflete exatamente a ordem de registro
    - Nenhum Stage inválido é aceito (o registry não muda após um erro)

Limites explícitos:
    - Não executa Stages
    - Não avalia predicados de habilitação (dependem da config da run)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .stage import Stage


class PipelineAssemblyError(ValueError):
    """Base dos erros estruturais detectados no assembly do pipeline."""


class DuplicateStageNameError(PipelineAssemblyError):
    """Dois Stages registrados com o mesmo nome."""


class DuplicateOutputKeyError(PipelineAssemblyError):
    """
    Uma chave de output declarada por mais de um Stage.

    Outputs são write-once por run; um segundo produtor da mesma chave é
    um erro de configuração, detectado aqui e não durante a execução.
    """


class UnknownInputKeyError(PipelineAssemblyError):
    """Input declarado que nenhum Stage anterior produz."""


@dataclass
class StageRegistry:
    """Registro ordenado e validado de Stages."""

    _stages: Dict[str, Stage] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)
    _producers: Dict[str, str] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def of(cls, stages: Iterable[Stage]) -> "StageRegistry":
        reg = cls()
        for stage in stages:
            reg.add(stage)
        return reg

    def add(self, stage: Stage) -> None:
        name = getattr(stage, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise PipelineAssemblyError("stage.name must be a non-empty string")

        if name in self._stages:
            raise DuplicateStageNameError(f"Duplicate stage name: {name}")

        for key in stage.outputs:
            if key in self._producers:
                raise DuplicateOutputKeyError(
                    f"Output key '{key}' of stage '{name}' is already produced by "
                    f"stage '{self._producers[key]}'"
                )

        for key in stage.inputs:
            if key not in self._producers:
                raise UnknownInputKeyError(
                    f"Stage '{name}' consumes '{key}', which no earlier stage produces"
                )

        self._stages[name] = stage
        self._order.append(name)
        for key in stage.outputs:
            self._producers[key] = name

    def get(self, name: str) -> Stage:
        return self._stages[name]

    def producer_of(self, key: str) -> str:
        return self._producers[key]

    def list(self) -> List[Stage]:
        return [self._stages[n] for n in self._order]

    def __len__(self) -> int:
        return len(self._order)
