# src/atlas_deployflow/deploy/__init__.py
"""
Composição dos values de deploy.

    chart defaults  <  overlay do ambiente  <  fatos dinâmicos da run

A mesma política de deep-merge da configuração é aplicada; o resultado é
uma árvore única e total entregue ao adapter de deploy.
"""

from .image import ImageReference
from .values import DeploymentValues, DynamicFacts, ValueComposer, load_chart_defaults

__all__ = [
    "DeploymentValues",
    "DynamicFacts",
    "ImageReference",
    "ValueComposer",
    "load_chart_defaults",
]
