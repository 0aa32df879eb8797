"""
RouteFlow — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do RouteFlow.

Objetivo:
- Permitir que nós e Engine levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para FlowErrorPayload
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Taxonomia:
- ConfigurationError: configuração inválida, fatal, impede o início da execução
- UnsupportedFeatureError: opção reconhecida porém não implementada, fatal
- RowLevelError: falha de um único registro, tratada conforme política do nó
- RoutingLossWarning: registro sem aresta de destino (registrado, nunca levantado pelo Engine)
- SLAViolation: tempo decorrido acima do limite configurado
- CheckpointNotFoundError: Resume sem o marcador de checkpoint correspondente

Regras:
- Não contém lógica de roteamento.
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class FlowException(Exception):
    """Base class para exceções internas do RouteFlow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Configuração / Planejamento
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfigurationError(FlowException):
    """Configuração ausente, inválida ou inconsistente (detectada antes da execução)."""


@dataclass(frozen=True)
class UnsupportedFeatureError(FlowException):
    """Opção reconhecida pelo RouteFlow, mas explicitamente não implementada."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RowLevelError(FlowException):
    """Falha restrita a um único registro.

    O registro ofensivo é carregado em `record` para inspeção. O stage
    decide, pela política do nó (`onFailure.stopOnError`), se o registro
    é descartado ou se a falha escala para fatal.
    """

    record: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class RoutingLossWarning(FlowException):
    """Registro descartado por ausência de aresta correspondente ou default."""

    node_id: Optional[str] = None
    route_key: Optional[str] = None


@dataclass(frozen=True)
class SLAViolation(FlowException):
    """Tempo decorrido do stage excedeu o limite configurado."""


@dataclass(frozen=True)
class CheckpointNotFoundError(FlowException):
    """Marcador de checkpoint requerido não existe nas variáveis da execução."""
