"""Weighted relationship graph over the current character set.

Purely functional: the graph is rebuilt from the characters handed in,
nothing is persisted, and no query mutates it.

Traversal is a weighted breadth-first search:

    newWeight  = pathWeight(parent) * edgeWeight * depthDecay
    relevance  = newWeight * depthDecay ** depth

A node is visited at most once, through whichever path reaches it first
in BFS order. This is a cheap relevance-propagation approximation, not a
shortest-weighted-path search: a heavier path discovered later at the
same depth does not replace the first one. Paths whose weight drops below
`min_path_weight` are pruned (the target is neither visited nor queued),
which bounds growth on dense graphs. Depth decay is applied twice: once
per hop in the accumulated weight and once more in the relevance score.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from loreweave.graph.weights import RelationWeightResolver
from loreweave.models import Character
from loreweave.observability.emitter import emit
from loreweave.observability.events import GraphTraversed
from loreweave.observability.logging import get_logger
from loreweave.observability.tracing import traced

logger = get_logger(__name__)


@dataclass(frozen=True)
class RelationshipEdge:
    """Derived edge; computed on demand from a character's relationship list."""

    source_id: str
    target_id: str
    relation: str
    weight: float


@dataclass
class TraversalConfig:
    max_depth: int = 2
    depth_decay: float = 0.6
    min_path_weight: float = 0.1
    include_seeds: bool = True


@dataclass
class _QueuedNode:
    """Transient BFS state."""

    character: Character
    depth: int
    path_weight: float
    path: list[str]
    relation_chain: list[str]


@dataclass
class GraphHit:
    """A character reached by traversal, with how it was reached."""

    character: Character
    depth: int
    path_weight: float
    relevance_score: float
    relation_chain: list[str] = field(default_factory=list)
    path: list[str] = field(default_factory=list)


@dataclass
class RelationshipPath:
    characters: list[Character]
    relations: list[str]

    @property
    def ids(self) -> list[str]:
        return [c.id for c in self.characters]


class RelationshipGraph:
    """Relationship index + traversal queries for one character set."""

    def __init__(
        self,
        characters: Iterable[Character],
        resolver: RelationWeightResolver | None = None,
    ) -> None:
        self.resolver = resolver or RelationWeightResolver()
        self._characters: dict[str, Character] = {}
        for character in characters:
            self._characters.setdefault(character.id, character)
        self._index = self._build_index()

    def _build_index(self) -> dict[str, list[RelationshipEdge]]:
        index: dict[str, list[RelationshipEdge]] = {}
        for character in self._characters.values():
            index[character.id] = [
                RelationshipEdge(
                    source_id=character.id,
                    target_id=rel.target_id,
                    relation=rel.relation,
                    weight=self.resolver.resolve(rel.relation),
                )
                for rel in character.relationships
            ]
        return index

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def __contains__(self, character_id: object) -> bool:
        return character_id in self._characters

    def __len__(self) -> int:
        return len(self._characters)

    def get(self, character_id: str) -> Character | None:
        return self._characters.get(character_id)

    def edges(self, character_id: str) -> list[RelationshipEdge]:
        """Outgoing edges of a character (empty for unknown ids)."""
        return list(self._index.get(character_id, ()))

    # ------------------------------------------------------------------
    # Weighted BFS
    # ------------------------------------------------------------------

    @traced("graph.traverse")
    def traverse(
        self,
        seed_ids: Iterable[str],
        config: TraversalConfig | None = None,
    ) -> list[GraphHit]:
        """Weighted BFS from the seeds. Results sorted by relevance, descending.

        Unknown seed ids are ignored. Seeds are emitted with relevance 1.0
        when config.include_seeds is set.
        """
        cfg = config or TraversalConfig()
        t0 = time.perf_counter()

        visited: set[str] = set()
        results: list[GraphHit] = []
        queue: deque[_QueuedNode] = deque()
        pruned = 0

        for seed_id in seed_ids:
            seed = self._characters.get(seed_id)
            if seed is None or seed_id in visited:
                continue
            visited.add(seed_id)
            if cfg.include_seeds:
                results.append(
                    GraphHit(
                        character=seed,
                        depth=0,
                        path_weight=1.0,
                        relevance_score=1.0,
                        path=[seed_id],
                    )
                )
            queue.append(
                _QueuedNode(
                    character=seed, depth=0, path_weight=1.0, path=[seed_id], relation_chain=[]
                )
            )

        seed_count = len(visited)

        while queue:
            current = queue.popleft()
            if current.depth >= cfg.max_depth:
                continue

            for edge in self._index.get(current.character.id, ()):
                if edge.target_id in visited:
                    continue
                target = self._characters.get(edge.target_id)
                if target is None:
                    continue

                new_weight = current.path_weight * edge.weight * cfg.depth_decay
                if new_weight < cfg.min_path_weight:
                    pruned += 1
                    continue

                visited.add(edge.target_id)
                new_depth = current.depth + 1
                new_path = [*current.path, edge.target_id]
                new_chain = [*current.relation_chain, edge.relation]

                results.append(
                    GraphHit(
                        character=target,
                        depth=new_depth,
                        path_weight=new_weight,
                        relevance_score=new_weight * cfg.depth_decay**new_depth,
                        relation_chain=new_chain,
                        path=new_path,
                    )
                )
                queue.append(
                    _QueuedNode(
                        character=target,
                        depth=new_depth,
                        path_weight=new_weight,
                        path=new_path,
                        relation_chain=new_chain,
                    )
                )

        results.sort(key=lambda hit: hit.relevance_score, reverse=True)

        emit(
            GraphTraversed(
                seed_count=seed_count,
                visited_count=len(visited),
                result_count=len(results),
                pruned_count=pruned,
                max_depth=cfg.max_depth,
                latency_ms=(time.perf_counter() - t0) * 1000,
            )
        )
        return results

    def connections(self, character_id: str, depth: int = 2) -> list[GraphHit]:
        """N-degree connections of one character, excluding the character itself."""
        return self.traverse(
            [character_id], TraversalConfig(max_depth=depth, include_seeds=False)
        )

    # ------------------------------------------------------------------
    # Path finding
    # ------------------------------------------------------------------

    @traced("graph.find_path")
    def find_path(
        self,
        source_id: str,
        target_id: str,
        max_depth: int = 4,
    ) -> RelationshipPath | None:
        """Unweighted BFS shortest path of at most max_depth edges.

        Returns None when either endpoint is unknown or no path exists
        within the bound. source == target yields a single-node path.
        """
        source = self._characters.get(source_id)
        if source is None or target_id not in self._characters:
            return None
        if source_id == target_id:
            return RelationshipPath(characters=[source], relations=[])

        visited = {source_id}
        queue: deque[tuple[str, list[str], list[str]]] = deque([(source_id, [source_id], [])])

        while queue:
            node_id, path, relations = queue.popleft()
            if len(path) - 1 >= max_depth:
                continue
            for edge in self._index.get(node_id, ()):
                if edge.target_id not in self._characters:
                    continue
                if edge.target_id == target_id:
                    ids = [*path, target_id]
                    return RelationshipPath(
                        characters=[self._characters[i] for i in ids],
                        relations=[*relations, edge.relation],
                    )
                if edge.target_id not in visited:
                    visited.add(edge.target_id)
                    queue.append((edge.target_id, [*path, edge.target_id], [*relations, edge.relation]))

        logger.debug("graph.no_path", source_id=source_id, target_id=target_id, max_depth=max_depth)
        return None

    # ------------------------------------------------------------------
    # Retrieval helpers
    # ------------------------------------------------------------------

    def enhance(
        self,
        seed_ids: Iterable[str],
        depth: int = 2,
        limit: int = 10,
    ) -> list[Character]:
        """Blend seeds with their graph neighborhood, deduplicated and capped.

        Surfaces characters that matter relationally even when the query
        never names them (a protagonist's nemesis, a mentor's rival).
        """
        hits = self.traverse(seed_ids, TraversalConfig(max_depth=depth, include_seeds=True))
        seen: set[str] = set()
        out: list[Character] = []
        for hit in hits:
            if len(out) >= limit:
                break
            if hit.character.id in seen:
                continue
            seen.add(hit.character.id)
            out.append(hit.character)
        return out

    def summary(self, character_id: str, max_connections: int = 10) -> str:
        """Render a character's depth-1 and depth-2 network for prompt assembly."""
        character = self._characters.get(character_id)
        if character is None:
            return ""
        top = self.connections(character_id, depth=2)[:max_connections]
        if not top:
            return ""

        lines = [f"{character.name}'s relationship network:"]
        direct = [hit for hit in top if hit.depth == 1]
        indirect = [hit for hit in top if hit.depth == 2]
        if direct:
            lines.append("  Direct relations:")
            lines.extend(_summary_line(hit) for hit in direct)
        if indirect:
            lines.append("  Indirect relations:")
            lines.extend(_summary_line(hit) for hit in indirect)
        return "\n".join(lines)


def _summary_line(hit: GraphHit) -> str:
    return f"    - {hit.character.name} ({' -> '.join(hit.relation_chain)})"
