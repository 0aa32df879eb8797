# tests/nodes/test_range_partition.py
"""Testes unitários de RangePartition.

Cobre:
- buckets fechados e abertos, avaliados em ordem
- `unknown` para valores ausentes, não inteiros ou fora das faixas
- `_partitionIndex` pela ordem de chegada
- validação de `rangeField` e `ranges`
- roteamento por bucket com fallback para a aresta default
"""

import pytest

from routeflow.core.exceptions import ConfigurationError
from routeflow.nodes.partition.range_partition import RangeBucket, bucket_for, parse_bucket


BUCKETS = (RangeBucket("low", 0, 9), RangeBucket("high", 10))


def test_buckets_from_node(run_direct):
    ctx = run_direct(
        "RangePartition",
        config={"rangeField": "v", "ranges": "low:0-9,high:10+"},
        variables={"inputItems": [{"v": 5}, {"v": 10}, {"v": -1}, {"v": "abc"}]},
    )
    out = ctx.get_variable("outputItems")
    assert [r["_rangeBucket"] for r in out] == ["low", "high", "unknown", "unknown"]
    assert [r["_partitionIndex"] for r in out] == [0, 1, 2, 3]


@pytest.mark.parametrize(
    "value, expected",
    [(0, "low"), (9, "low"), (" 7 ", "low"), (1000, "high"), (None, "unknown"), (True, "unknown"), (9.5, "unknown")],
)
def test_bucket_for(value, expected):
    assert bucket_for(value, BUCKETS) == expected


def test_first_matching_bucket_wins():
    overlapping = (RangeBucket("a", 0, 10), RangeBucket("b", 5, 20))
    assert bucket_for(7, overlapping) == "a"


def test_parse_bucket():
    assert parse_bucket(" mid : -5 - 5 ") == RangeBucket("mid", -5, 5)
    assert parse_bucket("big:100+") == RangeBucket("big", 100)
    assert parse_bucket("nope") is None
    assert parse_bucket("x:1-") is None


@pytest.mark.parametrize(
    "config",
    [
        {"ranges": "low:0-9"},
        {"rangeField": "v"},
        {"rangeField": "v", "ranges": "low:9-0"},
        {"rangeField": "v", "ranges": "low:a-b"},
    ],
)
def test_invalid_configuration(run_direct, config):
    with pytest.raises(ConfigurationError):
        run_direct("RangePartition", config=config)


def test_routed_buckets_fall_back_to_first_edge(run_workflow):
    result = run_workflow(
        nodes=[
            {"id": "src", "type": "Start", "config": {"records": [{"v": 3}, {"v": 50}, {"v": "?"}]}},
            {
                "id": "ranges",
                "type": "RangePartition",
                "config": {"rangeField": "v", "ranges": ["low:0-9", "high:10+"], "routeByPartition": True},
            },
            {"id": "low", "type": "End"},
            {"id": "high", "type": "End"},
        ],
        edges=[
            {"source": "src", "target": "ranges"},
            {"source": "ranges", "sourceHandle": "low", "target": "low"},
            {"source": "ranges", "sourceHandle": "high", "target": "high"},
        ],
    )
    assert [r["v"] for r in result.outputs["low"]] == [3, "?"]
    assert [r["v"] for r in result.outputs["high"]] == [50]
