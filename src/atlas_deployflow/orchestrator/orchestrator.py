# src/atlas_deployflow/orchestrator/orchestrator.py
"""
PipelineOrchestrator — ponto de entrada de uma run de entrega.

Fluxo:
    1. Resolve a EffectiveConfig (base → overlay → parâmetros de runtime);
       o ambiente alvo é validado uma vez, antes de qualquer merge
    2. Monta o catálogo de Stages para essa configuração
    3. Executa via StageExecutor e devolve o PipelineResult

Decisões arquiteturais:
    - Erros de configuração (`ConfigError`) são levantados ao chamador: a
      run nem começa e nenhum adapter é chamado.
    - Falhas de Stage nunca são levantadas: ficam no PipelineResult.
    - O orquestrador não guarda estado por run; várias runs podem usar a
      mesma instância em threads distintas.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Union

from atlas_deployflow.adapters.protocols import PipelineAdapters
from atlas_deployflow.core.config.effective import EffectiveConfig
from atlas_deployflow.core.config.loader import ConfigDefinitions, load_config_definitions
from atlas_deployflow.core.config.resolver import REQUIRED_KEYS, ConfigResolver
from atlas_deployflow.core.engine.executor import StageExecutor
from atlas_deployflow.core.pipeline.cancellation import CancellationToken
from atlas_deployflow.core.pipeline.stage import Stage
from atlas_deployflow.core.pipeline.types import PipelineResult
from atlas_deployflow.deploy.values import ValueComposer
from atlas_deployflow.secrets.provider import SecretProvider
from atlas_deployflow.secrets.store import SecretStore, SecretTarget

from .stages import build_default_stages


class PipelineOrchestrator:
    def __init__(
        self,
        definitions: ConfigDefinitions,
        adapters: PipelineAdapters,
        *,
        secret_store: SecretStore,
        secret_target: SecretTarget,
        chart_defaults: Optional[Mapping[str, Any]] = None,
        credentials: Optional[Mapping[str, Any]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        composer: Optional[ValueComposer] = None,
    ):
        self.resolver = ConfigResolver(definitions, required=REQUIRED_KEYS)
        self.adapters = adapters
        self.secret_store = secret_store
        self.secret_provider = SecretProvider(secret_target)
        self.chart_defaults = dict(chart_defaults or {})
        self.credentials = credentials
        self.composer = composer or ValueComposer()
        self.executor = StageExecutor(clock=clock)

    @classmethod
    def from_directory(
        cls,
        config_dir: Union[str, Path],
        adapters: PipelineAdapters,
        **kwargs: Any,
    ) -> "PipelineOrchestrator":
        """Atalho: carrega `base` + `environments/*` de um diretório."""
        return cls(load_config_definitions(config_dir), adapters, **kwargs)

    def resolve(
        self,
        environment: object,
        runtime_params: Optional[Mapping[str, Any]] = None,
    ) -> EffectiveConfig:
        """
        Raises:
            UnknownEnvironmentError: Ambiente fora do conjunto registrado.
            MissingRequiredConfigError: Chave obrigatória ausente após o merge.
            MergeConflictError: Camadas com tipos incompatíveis.
        """
        return self.resolver.resolve(environment, runtime_params)

    def assemble(self, config: EffectiveConfig) -> List[Stage]:
        return build_default_stages(
            config,
            self.adapters,
            secret_provider=self.secret_provider,
            secret_store=self.secret_store,
            chart_defaults=self.chart_defaults,
            credentials=self.credentials,
            composer=self.composer,
        )

    def run(
        self,
        environment: object,
        runtime_params: Optional[Mapping[str, Any]] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
        run_id: Optional[str] = None,
    ) -> PipelineResult:
        config = self.resolve(environment, runtime_params)
        stages = self.assemble(config)
        meta = {"environment": config.environment.value if config.environment else None}
        return self.executor.run(
            stages,
            config,
            run_id=run_id,
            meta=meta,
            cancel_token=cancel_token,
        )
