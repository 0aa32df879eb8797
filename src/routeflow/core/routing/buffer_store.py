# src/routeflow/core/routing/buffer_store.py
"""
Buffer store de arestas (estado de roteamento por execução).

Este módulo define o `EdgeBufferStore`, o único estado compartilhado entre
stages de nós durante uma execução. Cada buffer é identificado pela tripla
`(execution_id, node_id, port)` e guarda, em ordem de chegada, os
registros pendentes para aquela porta de entrada.

Decisões arquiteturais:
    - Buffers são criados na primeira escrita e removidos no teardown
      da execução (`clear_execution`)
    - `drain` compõe leitura + limpeza de forma atômica
    - Um único lock protege o mapa; operações são curtas e sem I/O
    - Porta ausente equivale à porta `default`

Invariantes:
    - FIFO estrito dentro de uma porta
    - Nenhuma escrita é perdida; um `drain` concorrente com `add_record`
      devolve o registro ou o deixa para o próximo `drain`, nunca ambos
    - Execuções distintas nunca compartilham buffers

Limites explícitos:
    - Não persiste buffers (estado consultivo em memória)
    - Não garante ordem entre portas diferentes
    - Não conhece arestas nem nós (responsabilidade do RoutingContext)

Este módulo existe para garantir entrega no máximo uma vez por rota
e isolamento entre execuções concorrentes.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Tuple

from routeflow.core.pipeline.types import Record


DEFAULT_PORT = "default"

BufferKey = Tuple[str, str, str]


class EdgeBufferStore:
    """Armazenamento thread-safe de registros pendentes por (execução, nó, porta)."""

    def __init__(self) -> None:
        self._buffers: Dict[BufferKey, List[Record]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(execution_id: str, node_id: str, port: Optional[str]) -> BufferKey:
        return (execution_id, node_id, port or DEFAULT_PORT)

    def add_record(self, execution_id: str, node_id: str, port: Optional[str], record: Record) -> None:
        key = self._key(execution_id, node_id, port)
        with self._lock:
            self._buffers.setdefault(key, []).append(record)

    def add_records(self, execution_id: str, node_id: str, port: Optional[str], records: Iterable[Record]) -> None:
        key = self._key(execution_id, node_id, port)
        batch = list(records)
        with self._lock:
            self._buffers.setdefault(key, []).extend(batch)

    def get_records(self, execution_id: str, node_id: str, port: Optional[str] = None) -> List[Record]:
        """Cópia do conteúdo atual, sem limpar."""
        key = self._key(execution_id, node_id, port)
        with self._lock:
            return list(self._buffers.get(key, ()))

    def clear_buffer(self, execution_id: str, node_id: str, port: Optional[str] = None) -> None:
        key = self._key(execution_id, node_id, port)
        with self._lock:
            self._buffers.pop(key, None)

    def drain(self, execution_id: str, node_id: str, port: Optional[str] = None) -> List[Record]:
        """Lê e limpa o buffer atomicamente."""
        key = self._key(execution_id, node_id, port)
        with self._lock:
            return self._buffers.pop(key, [])

    def has_records(self, execution_id: str, node_id: str, port: Optional[str] = None) -> bool:
        key = self._key(execution_id, node_id, port)
        with self._lock:
            return bool(self._buffers.get(key))

    def ports_with_records(self, execution_id: str, node_id: str) -> List[str]:
        with self._lock:
            return [
                port for (eid, nid, port), records in self._buffers.items()
                if eid == execution_id and nid == node_id and records
            ]

    def clear_execution(self, execution_id: str) -> int:
        """Remove todos os buffers da execução; retorna quantos foram removidos."""
        with self._lock:
            keys = [k for k in self._buffers if k[0] == execution_id]
            for k in keys:
                del self._buffers[k]
            return len(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffers)
