"""
RouteFlow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros reportados pelo RouteFlow.
Erros são parte do contrato operacional do Engine e devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlowErrorPayload:
    """
    Payload canônico de erro do RouteFlow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"

# Registros / Roteamento
ROW_LEVEL_ERROR = "ROW_LEVEL_ERROR"
ROUTING_LOSS = "ROUTING_LOSS"

# Tempo
SLA_VIOLATION = "SLA_VIOLATION"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def engine_execution_error(
    *,
    node: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique os eventos da execução para diagnosticar a falha. Nenhum fallback é aplicado automaticamente.",
) -> FlowErrorPayload:
    return FlowErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a execução do workflow",
        details={
            "node": node,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def routing_loss(
    *,
    node: str,
    route_key: Optional[str] = None,
    hint: str = "Declare uma aresta de saída para o nó ou remova o rótulo de rota dos registros.",
) -> FlowErrorPayload:
    return FlowErrorPayload(
        type=ROUTING_LOSS,
        message="Registro descartado: nenhuma aresta de saída disponível",
        details={"node": node, "route_key": route_key},
        hint=hint,
    )


def unread_port(*, node: str, port: str, count: int) -> FlowErrorPayload:
    return FlowErrorPayload(
        type=ROUTING_LOSS,
        message=f"{count} registro(s) descartado(s): porta de entrada '{port}' não lida pelo nó",
        details={"node": node, "route_key": port, "records": count},
        hint="Conecte a aresta a uma porta que o tipo do nó consome (ex.: 'in').",
    )
