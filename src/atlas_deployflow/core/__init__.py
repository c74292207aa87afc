# src/atlas_deployflow/core/__init__.py
"""
Core do Atlas DeployFlow.

Reúne as responsabilidades independentes de colaboradores externos:
    - config       → resolução de configuração (base + overlay + runtime)
    - pipeline     → Stage, PipelineContext, tipos de resultado e registry
    - engine       → assembly e execução controlada do pipeline
    - traceability → Manifest e Event Log para auditoria

Limites explícitos:
    - Não conhece build tools, scanners, registries ou Kubernetes
    - Não contém políticas de negócio além de fail-fast/advisory
"""
