# src/atlas_deployflow/deploy/values.py
"""
ValueComposer — composição determinística dos values de deploy.

Contrato:
    compose(chart_defaults, environment_overlay, dynamic_facts) -> DeploymentValues

Precedência: dynamic_facts > environment_overlay > chart_defaults, com a
mesma política de `deep_merge` usada na configuração (mapas mesclados por
chave, sequências substituídas inteiras).

Os fatos dinâmicos incluem sempre a imagem resolvida, o identificador do
build e as dicas de réplicas/recursos do ambiente. Eles são calculados
pelos Stages anteriores e nunca editados à mão.

Limites explícitos:
    - Não valida o schema do chart (responsabilidade do deploy externo)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from atlas_deployflow.core.config.effective import _freeze
from atlas_deployflow.core.config.loader import load_config_file
from atlas_deployflow.core.config.merge import _thaw, merge_layers

from .image import ImageReference


@dataclass(frozen=True)
class DynamicFacts:
    """Fatos calculados durante a run e injetados nos values."""

    image: ImageReference
    build_id: str
    replicas: Optional[int] = None
    resources: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_values(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {
            "image": self.image.to_values(),
            "build": {"id": str(self.build_id)},
        }
        if self.replicas is not None:
            values["replicaCount"] = int(self.replicas)
        if self.resources:
            values["resources"] = _thaw(self.resources)
        if self.extra:
            values = merge_layers(values, self.extra)
        return values


class DeploymentValues(Mapping[str, Any]):
    """Árvore final (imutável) entregue ao adapter de deploy."""

    __slots__ = ("_tree",)

    def __init__(self, tree: Mapping[str, Any]):
        self._tree = _freeze(dict(tree))

    def __getitem__(self, key: str) -> Any:
        return self._tree[key]

    def __iter__(self):
        return iter(self._tree)

    def __len__(self) -> int:
        return len(self._tree)

    def __repr__(self) -> str:
        return f"DeploymentValues({self.to_dict()!r})"

    def to_dict(self) -> Dict[str, Any]:
        return _thaw(self._tree)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=True, default_flow_style=False)

    def write(self, path: Union[str, Path]) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(self.to_yaml(), encoding="utf-8")
        return p


class ValueComposer:
    """Função pura de composição; sem estado."""

    def compose(
        self,
        chart_defaults: Optional[Mapping[str, Any]],
        environment_overlay: Optional[Mapping[str, Any]],
        dynamic_facts: Union[DynamicFacts, Mapping[str, Any], None],
    ) -> DeploymentValues:
        """
        Raises:
            MergeConflictError: Se uma camada tentar trocar um mapa por um
                valor não-mapa (ou vice-versa).
        """
        if isinstance(dynamic_facts, DynamicFacts):
            facts: Mapping[str, Any] = dynamic_facts.to_values()
        else:
            facts = dynamic_facts or {}

        return DeploymentValues(
            merge_layers(chart_defaults or {}, environment_overlay or {}, facts)
        )


def load_chart_defaults(path: Union[str, Path]) -> Dict[str, Any]:
    """Carrega o `values.yaml` padrão de um chart (mesmas regras do loader de config)."""
    return load_config_file(path)
