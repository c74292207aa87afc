# src/atlas_deployflow/core/config/resolver.py
"""
ConfigResolver — resolução da configuração efetiva de uma run.

Camadas, em ordem crescente de precedência:
    1. base            (defaults do serviço)
    2. overlay         (ambiente de destino)
    3. runtime params  (fornecidos na invocação)

Decisões arquiteturais:
    - O ambiente é validado antes de qualquer merge (falha barata)
    - Parâmetros de runtime são planos; chaves pontuadas são expandidas
      em caminhos aninhados e nomes conhecidos são mapeados para seus
      caminhos canônicos (ver `RUNTIME_PARAM_PATHS`)
    - Chaves obrigatórias são verificadas somente após o merge completo

Invariantes:
    - A resolução é pura: nenhuma I/O além dos três inputs
    - merge(base, overlay, runtime) == merge(merge(base, overlay), runtime)
    - Nenhuma chave de nenhuma camada é descartada silenciosamente
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from .effective import EffectiveConfig
from .environments import Environment
from .errors import MergeConflictError, MissingRequiredConfigError, UnknownEnvironmentError
from .loader import ConfigDefinitions
from .merge import deep_merge, merge_layers

REQUIRED_KEYS: Tuple[str, ...] = (
    "service.name",
    "source.repository",
    "deploy.namespace",
)

RUNTIME_PARAM_PATHS: Mapping[str, str] = {
    "service": "service.name",
    "source": "source.repository",
    "branch": "source.branch",
    "environment": "deploy.environment",
    "version": "release.version",
    "build_id": "build.id",
}

_MISSING = object()

_STAGES_PREFIX = "stages."


def _runtime_key_parts(key: str) -> List[str]:
    """
    Divide uma chave de runtime em segmentos de caminho.

    Sob `stages.` o nome do Stage pode conter pontos (`image.push`), então
    só o último segmento é o campo: `stages.image.push.enabled` →
    ["stages", "image.push", "enabled"].
    """
    if key.startswith(_STAGES_PREFIX):
        stage_name, sep, field = key[len(_STAGES_PREFIX):].rpartition(".")
        if sep and stage_name and field:
            return ["stages", stage_name, field]
    return [p for p in key.split(".") if p]


def expand_runtime_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Converte parâmetros planos de runtime em uma árvore aninhada.

    Exemplos:
        {"service": "billing"}        → {"service": {"name": "billing"}}
        {"deploy.replicas": 3}        → {"deploy": {"replicas": 3}}
        {"stages.image.push.enabled": False}
                                      → {"stages": {"image.push": {"enabled": False}}}

    Raises:
        MergeConflictError: Se dois parâmetros colidirem estruturalmente
            (ex.: ``deploy=1`` e ``deploy.replicas=3``).
    """
    tree: Dict[str, Any] = {}
    for raw_key, value in (params or {}).items():
        key = RUNTIME_PARAM_PATHS.get(str(raw_key), str(raw_key))
        parts = _runtime_key_parts(key)
        if not parts:
            continue

        nested: Any = value
        for part in reversed(parts):
            nested = {part: nested}
        tree = deep_merge(tree, nested)
    return tree


def _missing_required(config: Mapping[str, Any], required: Tuple[str, ...]) -> Tuple[str, ...]:
    missing = []
    for path in required:
        node: Any = config
        for part in path.split("."):
            node = node.get(part, _MISSING) if isinstance(node, Mapping) else _MISSING
            if node is _MISSING:
                break
        if node is _MISSING or node is None or (isinstance(node, str) and not node.strip()):
            missing.append(path)
    return tuple(missing)


def _resolve_for(
    base: Mapping[str, Any],
    env: Environment,
    overlay: Mapping[str, Any],
    runtime_params: Optional[Mapping[str, Any]],
    required: Tuple[str, ...],
) -> EffectiveConfig:
    # `env` já validado pelo chamador.
    runtime_tree = expand_runtime_params(runtime_params)

    runtime_deploy = runtime_tree.get("deploy")
    declared_env = runtime_deploy.get("environment") if isinstance(runtime_deploy, Mapping) else None
    if declared_env is not None and Environment.parse(declared_env) is not env:
        raise MergeConflictError(
            f"Runtime parameter environment={declared_env!r} contradicts target environment {env.value!r}"
        )

    merged = merge_layers(base, overlay, runtime_tree)
    merged.setdefault("deploy", {})
    if isinstance(merged["deploy"], dict):
        merged["deploy"]["environment"] = env.value

    missing = _missing_required(merged, required)
    if missing:
        raise MissingRequiredConfigError(missing)

    return EffectiveConfig(merged, environment=env)


def resolve_config(
    base: Mapping[str, Any],
    environment: object,
    runtime_params: Optional[Mapping[str, Any]],
    overlays: Mapping[Environment, Mapping[str, Any]],
    *,
    required: Tuple[str, ...] = REQUIRED_KEYS,
) -> EffectiveConfig:
    """
    Resolve a configuração efetiva (forma funcional do `ConfigResolver`).

    Raises:
        UnknownEnvironmentError: Se o ambiente não pertence ao conjunto
            fechado ou não possui overlay registrado.
        MergeConflictError: Em conflito estrutural entre camadas.
        MissingRequiredConfigError: Se chaves obrigatórias faltarem.
    """
    registered: Dict[Environment, Mapping[str, Any]] = {}
    for key, layer in overlays.items():
        member = Environment.parse(key)
        if member is not None:
            registered[member] = layer

    env = Environment.parse(environment)
    if env is None or env not in registered:
        raise UnknownEnvironmentError(environment, sorted(e.value for e in registered))

    return _resolve_for(base, env, registered[env], runtime_params, required)


class ConfigResolver:
    """
    Resolve `EffectiveConfig` a partir de `ConfigDefinitions` carregadas.

    Uma instância pode ser compartilhada entre runs concorrentes: ela só
    lê as definições (imutáveis) e não guarda estado por run.
    """

    def __init__(self, definitions: ConfigDefinitions, *, required: Tuple[str, ...] = REQUIRED_KEYS):
        self.definitions = definitions
        self.required = tuple(required)

    def validate_environment(self, environment: object) -> Environment:
        env = Environment.parse(environment)
        if env is None or env not in self.definitions.overlays:
            raise UnknownEnvironmentError(environment, self.definitions.environments)
        return env

    def resolve(
        self,
        environment: object,
        runtime_params: Optional[Mapping[str, Any]] = None,
    ) -> EffectiveConfig:
        """Valida o ambiente uma única vez e então resolve as camadas."""
        env = self.validate_environment(environment)
        return _resolve_for(
            self.definitions.base,
            env,
            self.definitions.overlays[env],
            runtime_params,
            self.required,
        )
