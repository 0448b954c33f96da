"""Build directed dependency graph between managed objects."""

import networkx as nx
from typing import Dict, Iterable, List, Optional, Set
from ..ingest.models import ResourceConfig
from ..ingest.references import referenced_addresses
from ..state.models import ResourceState
from ..utils.errors import GraphError
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")


class DependencyGraph:
    """Directed dependency graph: nodes=addresses, edges=dependent -> dependency."""

    def __init__(self):
        self.graph = nx.DiGraph()
        self._configs: Dict[str, ResourceConfig] = {}

    def add_resource(self, address: str, config: Optional[ResourceConfig] = None) -> None:
        """Add a managed object to the graph."""
        self.graph.add_node(address, config=config)
        if config is not None:
            self._configs[address] = config

    def add_dependency(self, address: str, dependency: str) -> None:
        """Record that address must be applied after dependency."""
        if dependency == address:
            return
        self.graph.add_edge(address, dependency)
        logger.debug(f"Added dependency edge: {address} -> {dependency}")

    def build_from_configs(self, resources: List[ResourceConfig]) -> None:
        """
        Build the graph from configured resources.

        Dependencies come from explicit ``depends_on`` and from references
        inside attribute values.

        Raises:
            GraphError: If a dependency names an unknown object or the graph has a cycle
        """
        for resource in resources:
            self.add_resource(resource.address, resource)

        for resource in resources:
            for dependency in self.dependencies_of(resource):
                if dependency not in self.graph:
                    raise GraphError(f"{resource.address} depends on unknown resource {dependency}")
                self.add_dependency(resource.address, dependency)

        self._check_acyclic()
        logger.info(
            f"Built dependency graph with {self.graph.number_of_nodes()} nodes "
            f"and {self.graph.number_of_edges()} edges"
        )

    def add_orphans(self, states: Iterable[ResourceState]) -> List[str]:
        """
        Add recorded objects that are no longer configured.

        Orphans keep the dependencies recorded in state so they are deleted
        before the objects they depended on.

        Returns:
            Addresses of the orphans added
        """
        orphans = [state for state in states if state.address not in self.graph]
        for state in orphans:
            self.add_resource(state.address)
        for state in orphans:
            for dependency in state.depends_on:
                if dependency in self.graph:
                    self.add_dependency(state.address, dependency)
                else:
                    logger.debug(f"Recorded dependency not found in graph: {dependency}")
        self._check_acyclic()
        return [state.address for state in orphans]

    @staticmethod
    def dependencies_of(resource: ResourceConfig) -> Set[str]:
        deps = set(resource.depends_on)
        deps.update(referenced_addresses(resource.attributes))
        deps.discard(resource.address)
        return deps

    def apply_order(self) -> List[List[str]]:
        """Generations of addresses, dependencies before dependents."""
        return [sorted(generation) for generation in nx.topological_generations(self.graph.reverse(copy=False))]

    def destroy_order(self) -> List[List[str]]:
        """Generations of addresses, dependents before dependencies."""
        return [sorted(generation) for generation in nx.topological_generations(self.graph)]

    def get_downstream_resources(self, address: str) -> Set[str]:
        """Get all objects that depend on the given object (directly or transitively)."""
        if address not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, address))

    def get_upstream_resources(self, address: str) -> Set[str]:
        """Get all objects the given object depends on (directly or transitively)."""
        if address not in self.graph:
            return set()
        return set(nx.descendants(self.graph, address))

    def get_config(self, address: str) -> Optional[ResourceConfig]:
        return self._configs.get(address)

    def _check_acyclic(self) -> None:
        if nx.is_directed_acyclic_graph(self.graph):
            return
        cycle = nx.find_cycle(self.graph)
        path = " -> ".join([edge[0] for edge in cycle] + [cycle[0][0]])
        raise GraphError(f"Dependency cycle detected: {path}")
