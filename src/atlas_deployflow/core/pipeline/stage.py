# src/atlas_deployflow/core/pipeline/stage.py
"""
Descritor canônico de Stage do Atlas DeployFlow.

Um Stage é a menor unidade de trabalho do pipeline. Em vez de uma
hierarquia de classes, cada Stage é um descritor registrado em uma lista
ordenada e executado por um loop genérico (ver `core.engine.executor`).

Um descritor declara:
    - name: identificador único no pipeline
    - action: função `StageCall -> Mapping[str, Any]` com os outputs
    - inputs: chaves de contexto consumidas (produzidas por Stages anteriores)
    - outputs: chaves de contexto produzidas (write-once por run)
    - policy: FATAL (padrão) ou ADVISORY
    - enabled: predicado puro `EffectiveConfig -> bool`
    - timeout_s: limite opcional para a chamada externa do Stage

Princípios fundamentais:
    - Stages não conhecem o Engine nem outros Stages
    - Stages não escrevem no contexto: devolvem outputs e o Engine grava
    - Execução condicional é um predicado, não um `if` na orquestração

Limites explícitos:
    - Não define retry (responsabilidade do adapter externo, se houver)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple

from atlas_deployflow.core.config.effective import EffectiveConfig, as_flag

from .types import FailurePolicy

EnabledPredicate = Callable[[EffectiveConfig], bool]


def always_enabled(config: EffectiveConfig) -> bool:
    return True


def config_flag(path: str, default: bool = False) -> EnabledPredicate:
    """Predicado que lê um booleano da configuração efetiva."""

    def _predicate(config: EffectiveConfig) -> bool:
        return config.get_flag(path, default)

    _predicate.__name__ = f"config_flag[{path}]"
    return _predicate


def stage_toggle(name: str, *extra: EnabledPredicate) -> EnabledPredicate:
    """
    Predicado padrão dos Stages do catálogo.

    Um Stage roda quando `stages.<name>.enabled` não é falso **e** todos os
    predicados extras retornam verdadeiro.
    """

    def _predicate(config: EffectiveConfig) -> bool:
        stages_cfg = config.get("stages") or {}
        stage_cfg = stages_cfg.get(name) if isinstance(stages_cfg, Mapping) else None
        enabled = stage_cfg.get("enabled") if isinstance(stage_cfg, Mapping) else None
        return as_flag(enabled, f"stages.{name}.enabled", True) and all(p(config) for p in extra)

    _predicate.__name__ = f"stage_toggle[{name}]"
    return _predicate


@dataclass(frozen=True)
class StageCall:
    """
    Visão somente-leitura entregue à action de um Stage.

    Contém apenas o que o Stage declarou consumir (`inputs`) mais a
    configuração efetiva. `timeout_s` deve ser repassado às chamadas
    externas feitas pelo Stage.
    """

    run_id: str
    stage: str
    config: EffectiveConfig
    inputs: Mapping[str, Any]
    timeout_s: Optional[float] = None
    _log: Optional[Callable[..., None]] = field(default=None, repr=False, compare=False)
    _mark_sensitive: Optional[Callable[..., None]] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", MappingProxyType(dict(self.inputs)))

    def log(self, message: str, *, level: str = "info", **extra: Any) -> None:
        if self._log is not None:
            self._log(stage=self.stage, level=level, message=message, **extra)

    def mark_sensitive(self, *values: Any) -> None:
        """Registra valores que devem ser mascarados em todo o log da run."""
        if self._mark_sensitive is not None:
            self._mark_sensitive(*values)


StageAction = Callable[[StageCall], Optional[Mapping[str, Any]]]


@dataclass(frozen=True)
class Stage:
    """Descritor imutável de um Stage."""

    name: str
    action: StageAction = field(repr=False)
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()
    policy: FailurePolicy = FailurePolicy.FATAL
    enabled: EnabledPredicate = field(default=always_enabled, repr=False)
    timeout_s: Optional[float] = None
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("stage.name must be a non-empty string")
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        object.__setattr__(self, "policy", FailurePolicy(self.policy))
        if len(set(self.outputs)) != len(self.outputs):
            raise ValueError(f"Stage '{self.name}' declares the same output key twice")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError(f"Stage '{self.name}' timeout_s must be positive")
