# src/atlas_deployflow/adapters/__init__.py
"""
Contratos dos colaboradores externos do pipeline.

O core só conhece o **contrato de resultado** de cada colaborador
(sucesso/falha/relatório); build tools, scanners, transporte de artefatos
e o control plane do Kubernetes/Helm ficam fora do pacote.
"""

from .protocols import (
    ArtifactStoreAdapter,
    BuildAdapter,
    BuildOutput,
    DeployAdapter,
    ImageAdapter,
    ImageOutput,
    PipelineAdapters,
    PushOutput,
    QualityGateAdapter,
    RegistryAdapter,
    ReleaseStatus,
    ScanReport,
    TestAdapter,
    TestReport,
    UploadOutput,
)

__all__ = [
    "ArtifactStoreAdapter",
    "BuildAdapter",
    "BuildOutput",
    "DeployAdapter",
    "ImageAdapter",
    "ImageOutput",
    "PipelineAdapters",
    "PushOutput",
    "QualityGateAdapter",
    "RegistryAdapter",
    "ReleaseStatus",
    "ScanReport",
    "TestAdapter",
    "TestReport",
    "UploadOutput",
]
