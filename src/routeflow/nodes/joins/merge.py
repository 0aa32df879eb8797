# src/routeflow/nodes/joins/merge.py
"""
Merge — união simples de até quatro portas, sem deduplicação.

A ordem de saída é a ordem das portas (`in`, `in1`, `in2`, `in3`) e, dentro
de cada porta, a ordem de chegada. No modo direto as entradas são
`in1InputItems`, `in2InputItems` e `in3InputItems`.
"""

from __future__ import annotations

from routeflow.nodes._support import RecordNode


MERGE_PORTS = ("in", "in1", "in2", "in3")
MERGE_VARIABLES = ("in1InputItems", "in2InputItems", "in3InputItems")


class MergeNode(RecordNode):
    node_type = "Merge"
    input_ports = MERGE_PORTS
    input_variables = MERGE_VARIABLES
