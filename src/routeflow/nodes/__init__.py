# src/routeflow/nodes/__init__.py
"""
Comportamentos de nó do RouteFlow.

Famílias:
    - joins       → Join, Merge, Collect, Intersect, Minus
    - partition   → Partition, HashPartition, RangePartition, Broadcast, Replicate
    - conditional → Decision, Switch, JobCondition, Validate, SchemaValidator, Reject
    - control     → Start, End, Filter, Checkpoint, Resume, SLA, Throttle

`default_registry()` constrói o registro imutável com todos os tipos.
"""

from __future__ import annotations

from routeflow.core.pipeline.registry import BehaviorRegistry

from .conditional.decision import DecisionNode
from .conditional.job_condition import JobConditionNode
from .conditional.reject import RejectNode
from .conditional.schema_validator import SchemaValidatorNode
from .conditional.switch import SwitchNode
from .conditional.validate import ValidateNode
from .control.checkpoint import CheckpointNode, ResumeNode
from .control.end import EndNode
from .control.filter import FilterNode
from .control.start import StartNode
from .control.timing import SLANode, ThrottleNode
from .joins.collect import CollectNode
from .joins.join import JoinNode
from .joins.merge import MergeNode
from .joins.set_ops import IntersectNode, MinusNode
from .partition.fanout import BroadcastNode, ReplicateNode
from .partition.partition import HashPartitionNode, PartitionNode
from .partition.range_partition import RangePartitionNode


NODE_TYPES = (
    StartNode,
    EndNode,
    FilterNode,
    CheckpointNode,
    ResumeNode,
    SLANode,
    ThrottleNode,
    JoinNode,
    MergeNode,
    CollectNode,
    IntersectNode,
    MinusNode,
    PartitionNode,
    HashPartitionNode,
    RangePartitionNode,
    BroadcastNode,
    ReplicateNode,
    DecisionNode,
    SwitchNode,
    JobConditionNode,
    ValidateNode,
    SchemaValidatorNode,
    RejectNode,
)


def default_registry() -> BehaviorRegistry:
    return BehaviorRegistry(NODE_TYPES)
