"""Character relationship graph: edge weights and weighted traversal."""

from loreweave.graph.engine import (
    GraphHit,
    RelationshipEdge,
    RelationshipGraph,
    RelationshipPath,
    TraversalConfig,
)
from loreweave.graph.weights import (
    DEFAULT_RELATION_WEIGHT,
    RELATION_WEIGHTS,
    RelationWeightResolver,
    get_relation_weight,
)

__all__ = [
    "DEFAULT_RELATION_WEIGHT",
    "GraphHit",
    "RELATION_WEIGHTS",
    "RelationWeightResolver",
    "RelationshipEdge",
    "RelationshipGraph",
    "RelationshipPath",
    "TraversalConfig",
    "get_relation_weight",
]
