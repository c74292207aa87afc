# src/atlas_deployflow/orchestrator/__init__.py
"""
Orquestração de uma run completa de entrega.

    ConfigResolver → build/test/scan/upload/image → segredos → values → deploy

O orquestrador valida o ambiente uma única vez, antes de qualquer
trabalho de build, e delega a execução ao `StageExecutor`.
"""

from .orchestrator import PipelineOrchestrator
from .stages import (
    ARTIFACT_REF,
    COVERAGE_REPORT,
    DEPLOYMENT_VALUES,
    IMAGE_REF,
    IMAGE_SCAN_REPORT,
    PUSHED_REF,
    QUALITY_REPORT,
    RELEASE_STATUS,
    SECRET_RESULT,
    STORED_PATH,
    TESTS_PASSED,
    build_default_stages,
    secrets_enabled,
)

__all__ = [
    "ARTIFACT_REF",
    "COVERAGE_REPORT",
    "DEPLOYMENT_VALUES",
    "IMAGE_REF",
    "IMAGE_SCAN_REPORT",
    "PUSHED_REF",
    "PipelineOrchestrator",
    "QUALITY_REPORT",
    "RELEASE_STATUS",
    "SECRET_RESULT",
    "STORED_PATH",
    "TESTS_PASSED",
    "build_default_stages",
    "secrets_enabled",
]
