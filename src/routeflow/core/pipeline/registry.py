# src/routeflow/core/pipeline/registry.py
"""
Registro de tipos de nó (tipo → construtor de comportamento).

Este módulo define o `BehaviorRegistry`, um mapeamento imutável construído
uma única vez na inicialização a partir de um conjunto fixo de fábricas
de comportamento (tipicamente as classes de `routeflow.nodes`).

Decisões arquiteturais:
    - O registro é imutável após construído (sem registro global mutável)
    - Cada nó recebe uma instância nova do comportamento (`create`)
    - Tipo duplicado é erro de configuração na inicialização
    - Tipo desconhecido é erro de configuração no planejamento

Invariantes:
    - Cada `node_type` aparece exatamente uma vez
    - A ordem de registro é preservada em `types()`

Limites explícitos:
    - Não valida configuração de nós
    - Não executa nós
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping

from routeflow.core.exceptions import ConfigurationError

from .node import NodeBehavior


BehaviorFactory = Callable[[], NodeBehavior]


@dataclass(frozen=True)
class DuplicateNodeTypeError(ConfigurationError):
    """Dois comportamentos declaram o mesmo `node_type`."""


@dataclass(frozen=True)
class UnknownNodeTypeError(ConfigurationError):
    """Nenhum comportamento registrado para o `type` de um nó."""


class BehaviorRegistry:
    """Mapeamento imutável `node_type → fábrica de comportamento`."""

    def __init__(self, factories: Iterable[BehaviorFactory]) -> None:
        entries = {}
        for factory in factories:
            node_type = getattr(factory, "node_type", None)
            if not isinstance(node_type, str) or not node_type.strip():
                raise ConfigurationError(
                    "behavior.node_type must be a non-empty string",
                    details={"factory": repr(factory)},
                )
            if node_type in entries:
                raise DuplicateNodeTypeError(
                    f"Duplicate node type: {node_type}",
                    details={"node_type": node_type},
                )
            entries[node_type] = factory
        self._factories: Mapping[str, BehaviorFactory] = MappingProxyType(entries)

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def types(self) -> List[str]:
        return list(self._factories)

    def create(self, node_type: str) -> NodeBehavior:
        try:
            factory = self._factories[node_type]
        except KeyError:
            raise UnknownNodeTypeError(
                f"Unknown node type: {node_type}",
                details={"node_type": node_type, "known": sorted(self._factories)},
            ) from None
        behavior = factory()
        if not isinstance(behavior, NodeBehavior):
            raise ConfigurationError(
                f"Factory for '{node_type}' did not produce a NodeBehavior",
                details={"node_type": node_type},
            )
        return behavior
