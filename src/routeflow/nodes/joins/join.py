# src/routeflow/nodes/joins/join.py
"""
Join — junção por chave entre duas entradas.

Entradas:
    - roteado: portas `left`/`in` (primárias, via buffered reader) e porta `right`
      (lida do buffer store no writer, antes do lote primário ser combinado)
    - direto: variáveis `leftInputItems` (ou `inputItems`) e `rightInputItems`

Configuração:
    - joinType: inner (default), left, right, full
      (`cross`, `semi`, `anti` são reconhecidos mas não suportados)
    - leftKeys / rightKeys: campos-chave (lista ou string separada por vírgulas),
      obrigatórios e de mesmo tamanho

Semântica:
    - índice: chave composta dos campos `rightKeys` → registros da direita,
      em ordem de chegada
    - hit: um registro combinado por correspondência; campos da direita que
      colidem com campos da esquerda entram como `right_<campo>`; chaves da
      direita com o mesmo nome da chave da esquerda pareada não são copiadas
    - miss: `left`/`full` emitem uma cópia do registro da esquerda
    - `right`/`full`: registros da direita sem correspondência são emitidos
      após a passada da esquerda: `leftKeys` nulos, sobrescritos pelos
      campos do registro da direita
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Set, Tuple

from routeflow.core.keys import composite_key
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode


RIGHT_PREFIX = "right_"


@dataclass(frozen=True)
class JoinSettings:
    join_type: str
    left_keys: Tuple[str, ...]
    right_keys: Tuple[str, ...]


def _merge_into(target: Record, source: Mapping[str, Any], skip: Set[str]) -> Record:
    for key, value in source.items():
        if key in skip:
            continue
        if key in target:
            target[RIGHT_PREFIX + key] = value
        else:
            target[key] = value
    return target


def join_records(left: List[Record], right: List[Record], settings: JoinSettings) -> List[Record]:
    index: Dict[str, List[Record]] = {}
    for record in right:
        index.setdefault(composite_key(record, settings.right_keys), []).append(record)

    shared = {rk for lk, rk in zip(settings.left_keys, settings.right_keys) if lk == rk}
    emit_left_misses = settings.join_type in ("left", "full")
    emit_right_misses = settings.join_type in ("right", "full")

    joined: List[Record] = []
    left_keys_seen: Set[str] = set()
    for record in left:
        key = composite_key(record, settings.left_keys)
        left_keys_seen.add(key)
        matches = index.get(key)
        if matches:
            for match in matches:
                joined.append(_merge_into(dict(record), match, shared))
        elif emit_left_misses:
            joined.append(dict(record))

    if emit_right_misses:
        for record in right:
            if composite_key(record, settings.right_keys) in left_keys_seen:
                continue
            padded: Record = {k: None for k in settings.left_keys}
            padded.update(record)
            joined.append(padded)

    return joined


class JoinNode(RecordNode):
    node_type = "Join"
    input_ports = ("left", "in")
    input_variables = ("leftInputItems", "inputItems")

    def validate(self, config: Mapping[str, Any]) -> JoinSettings:
        cfg = ConfigReader(self.node_type, config)
        join_type = cfg.choice(
            "joinType", "inner", ("inner", "left", "right", "full"),
            unsupported=("cross", "semi", "anti"),
        )
        left_keys = cfg.names("leftKeys", required=True)
        right_keys = cfg.names("rightKeys", required=True)
        if len(left_keys) != len(right_keys):
            raise cfg.error("rightKeys", "leftKeys and rightKeys must have the same number of fields")
        return JoinSettings(join_type=join_type, left_keys=tuple(left_keys), right_keys=tuple(right_keys))

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        if execution.is_routing:
            right = execution.read_port("right")
        else:
            right = execution.read_variable("rightInputItems")

        joined = join_records(records, right, execution.settings)
        execution.log(
            "info",
            f"{execution.settings.join_type} join produced {len(joined)} records",
            left=len(records),
            right=len(right),
        )
        return execution.emit(joined)
