# src/atlas_deployflow/__init__.py
"""
Atlas DeployFlow — orquestração contract-driven de pipelines de build e deploy.

Este pacote raiz define o namespace público do Atlas DeployFlow, responsável
por levar um artefato de serviço, através de uma sequência fixa de gates de
qualidade e segurança, até um ambiente de destino.

Arquitetura em alto nível:
    - core.config       → carregamento, merge em camadas e hashing de configuração
    - core.pipeline     → descritores de Stage, contexto de execução e registry
    - core.engine       → planejamento (assembly) e execução sequencial de Stages
    - core.traceability → Manifest e Event Log da run
    - secrets           → aquisição e reconciliação de segredos (create-or-update)
    - deploy            → composição determinística dos values de deploy
    - adapters          → contratos dos colaboradores externos (build, scan, push...)
    - orchestrator      → fachada que conecta tudo em uma run completa

Limites explícitos:
    - Não invoca ferramentas de build, scanners ou Helm diretamente
    - Não persiste estado entre runs
    - Não lê variáveis de ambiente
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
