# src/atlas_deployflow/adapters/protocols.py
"""
Protocolos e tipos de resultado dos adapters externos.

Todo adapter recebe `timeout` (segundos) e deve respeitá-lo; o Engine
também limita a chamada pelo timeout do Stage. Falhas são sinalizadas
levantando as exceções de `core.exceptions` (BuildError, TestError, ...),
tratadas pelo core como "Stage falhou com diagnóstico".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from atlas_deployflow.deploy.values import DeploymentValues


# ---------------------------------------------------------------------------
# Resultados
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BuildOutput:
    artifact_ref: str


@dataclass(frozen=True)
class TestReport:
    __test__ = False

    passed: bool
    coverage_report: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScanReport:
    passed: bool
    report_ref: str = ""


@dataclass(frozen=True)
class UploadOutput:
    stored_path: str


@dataclass(frozen=True)
class ImageOutput:
    image_ref: str


@dataclass(frozen=True)
class PushOutput:
    pushed_ref: str


@dataclass(frozen=True)
class ReleaseStatus:
    release: str
    status: str
    revision: Optional[int] = None


# ---------------------------------------------------------------------------
# Protocolos
# ---------------------------------------------------------------------------

@runtime_checkable
class BuildAdapter(Protocol):
    def build(self, source_ref: str, *, timeout: Optional[float] = None) -> BuildOutput:
        ...


@runtime_checkable
class TestAdapter(Protocol):
    def test(self, artifact_ref: str, *, timeout: Optional[float] = None) -> TestReport:
        ...


@runtime_checkable
class QualityGateAdapter(Protocol):
    def scan(
        self,
        artifact_ref: str,
        policy: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> ScanReport:
        ...


@runtime_checkable
class ArtifactStoreAdapter(Protocol):
    def upload(
        self,
        artifact_ref: str,
        coordinates: Mapping[str, str],
        *,
        timeout: Optional[float] = None,
    ) -> UploadOutput:
        ...


@runtime_checkable
class ImageAdapter(Protocol):
    def build_image(self, artifact_ref: str, tag: str, *, timeout: Optional[float] = None) -> ImageOutput:
        ...

    def scan_image(
        self,
        image_ref: str,
        severity_threshold: str,
        *,
        timeout: Optional[float] = None,
    ) -> ScanReport:
        ...


@runtime_checkable
class RegistryAdapter(Protocol):
    def push(self, image_ref: str, *, timeout: Optional[float] = None) -> PushOutput:
        ...


@runtime_checkable
class DeployAdapter(Protocol):
    def deploy(
        self,
        chart_ref: str,
        values: DeploymentValues,
        namespace: str,
        context: Optional[str],
        *,
        timeout: Optional[float] = None,
    ) -> ReleaseStatus:
        ...


@dataclass(frozen=True)
class PipelineAdapters:
    """Conjunto de adapters usados pelo catálogo padrão de Stages."""

    build: BuildAdapter
    test: TestAdapter
    quality_gate: QualityGateAdapter
    artifact_store: ArtifactStoreAdapter
    image: ImageAdapter
    registry: RegistryAdapter
    deploy: DeployAdapter
