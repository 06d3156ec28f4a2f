"""
Graph analysis and cycle detection for factory registries.

Works on the static shape of a registry (names and declared dependencies)
without building any service, so misconfiguration can be reported up front.
"""

from typing import Dict, List, Mapping, Optional, Set, Tuple
from collections import defaultdict, deque

from jinja2 import Environment

from .annotations import Factory, is_eager, unwrap_factory
from .core import INJECTOR_NAME
from .errors import CircularDependencyError, RegistryValidationError


_DOT_TEMPLATE = """\
digraph {{ name }} {
  rankdir=LR;
  node [shape=box];
{% for node in nodes %}
  "{{ node.id }}" [{{ node.attrs }}];
{% endfor %}
{% for source, target in edges %}
  "{{ source }}" -> "{{ target }}";
{% endfor %}
}
"""

_env = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)
_dot = _env.from_string(_DOT_TEMPLATE)


def _dot_id(name: str) -> str:
    return name.replace("\\", "\\\\").replace('"', '\\"')


class DependencyGraph:
    """
    Build and analyze the dependency graph of a registry.

    Uses Tarjan's algorithm for cycle detection.
    """

    def __init__(self):
        self.adj_list: Dict[str, List[str]] = {}  # name -> [dependencies]
        self.eager: Set[str] = set()

    @classmethod
    def from_factories(cls, factories: Mapping[str, Factory]) -> "DependencyGraph":
        graph = cls()
        for name, factory in factories.items():
            dependencies, _ = unwrap_factory(factory, name)
            graph.add_service(name, dependencies, eager=is_eager(factory))
        return graph

    def add_service(self, name: str, dependencies: List[str], eager: bool = False) -> None:
        self.adj_list[name] = list(dependencies)
        if eager:
            self.eager.add(name)

    def _known(self, name: str) -> bool:
        return name in self.adj_list or name == INJECTOR_NAME

    def missing(self) -> List[Tuple[str, str]]:
        """(service, dependency) pairs whose dependency has no factory."""
        return [
            (name, dep)
            for name, deps in self.adj_list.items()
            for dep in deps
            if not self._known(dep)
        ]

    def detect_cycles(self) -> List[List[str]]:
        """
        Detect cycles using Tarjan's algorithm.

        Returns:
            List of strongly connected components that form cycles,
            self loops included
        """
        index_counter = 0
        stack: List[str] = []
        on_stack: Set[str] = set()
        index: Dict[str, int] = {}
        lowlinks: Dict[str, int] = {}
        sccs: List[List[str]] = []

        def strongconnect(name: str) -> None:
            nonlocal index_counter
            index[name] = lowlinks[name] = index_counter
            index_counter += 1
            stack.append(name)
            on_stack.add(name)

            for dep in self.adj_list.get(name, []):
                if dep not in self.adj_list:
                    # Missing or reserved, reported elsewhere
                    continue
                if dep not in index:
                    strongconnect(dep)
                    lowlinks[name] = min(lowlinks[name], lowlinks[dep])
                elif dep in on_stack:
                    lowlinks[name] = min(lowlinks[name], index[dep])

            if lowlinks[name] == index[name]:
                scc = []
                while True:
                    w = stack.pop()
                    on_stack.remove(w)
                    scc.append(w)
                    if w == name:
                        break
                # Stack order is reversed relative to the dependency edges
                sccs.append(scc[::-1])

        for name in self.adj_list:
            if name not in index:
                strongconnect(name)

        return [
            scc for scc in sccs
            if len(scc) > 1 or scc[0] in self.adj_list[scc[0]]
        ]

    def validate(self) -> None:
        """
        Raises:
            RegistryValidationError: If any dependency is missing or cyclic
        """
        missing = self.missing()
        cycles = self.detect_cycles()
        if missing or cycles:
            raise RegistryValidationError(missing=missing, cycles=cycles)

    def resolution_order(self) -> List[str]:
        """
        Topological order, dependencies before the services that need them.

        Raises:
            CircularDependencyError: If a cycle exists
        """
        # Kahn's algorithm over edges service -> dependency
        in_degree: Dict[str, int] = defaultdict(int)
        for name, deps in self.adj_list.items():
            for dep in deps:
                if dep in self.adj_list:
                    in_degree[dep] += 1

        queue = deque(name for name in self.adj_list if in_degree[name] == 0)
        result: List[str] = []

        while queue:
            name = queue.popleft()
            result.append(name)
            for dep in self.adj_list[name]:
                if dep not in self.adj_list:
                    continue
                in_degree[dep] -= 1
                if in_degree[dep] == 0:
                    queue.append(dep)

        if len(result) != len(self.adj_list):
            cycle = self.detect_cycles()[0]
            raise CircularDependencyError(cycle + cycle[:1])

        result.reverse()
        return result

    def tree(self, root: Optional[str] = None) -> str:
        """
        Text tree of dependencies.

        Args:
            root: Optional root service (if None, show every service
                nothing else depends on)
        """
        if root:
            return "\n".join(self._tree_lines(root, "", "", set()))

        depended_on = {dep for deps in self.adj_list.values() for dep in deps}
        roots = [name for name in self.adj_list if name not in depended_on]
        if not roots:
            # Every service sits on a cycle; fall back to registry order
            roots = list(self.adj_list)

        lines: List[str] = []
        for name in roots:
            lines.extend(self._tree_lines(name, "", "", set()))
        return "\n".join(lines)

    def _tree_lines(self, name: str, prefix: str, child_prefix: str, visited: Set[str]) -> List[str]:
        if name in visited:
            return [f"{prefix}{name} (circular)"]
        if name == INJECTOR_NAME:
            return [f"{prefix}{name} (injector)"]
        if name not in self.adj_list:
            return [f"{prefix}{name} (missing)"]

        label = f"{name} (eager)" if name in self.eager else name
        lines = [f"{prefix}{label}"]

        deps = self.adj_list[name]
        for i, dep in enumerate(deps):
            last = i == len(deps) - 1
            lines.extend(self._tree_lines(
                dep,
                child_prefix + ("└── " if last else "├── "),
                child_prefix + ("    " if last else "│   "),
                visited | {name},
            ))
        return lines

    def export_dot(self, name: str = "Services") -> str:
        """
        Export graph as Graphviz DOT format.

        Visualize with ``dot -Tpng services.dot -o services.png``.
        """
        nodes = []
        for service in self.adj_list:
            attrs = f'label="{_dot_id(service)}"'
            if service in self.eager:
                attrs += ' fillcolor="lightblue" style=filled'
            nodes.append({"id": _dot_id(service), "attrs": attrs})

        for dep in dict.fromkeys(dep for _, dep in self.missing()):
            nodes.append({"id": _dot_id(dep), "attrs": 'color="red" style=dashed'})

        edges = [
            (_dot_id(service), _dot_id(dep))
            for service, deps in self.adj_list.items()
            for dep in deps
            if dep != INJECTOR_NAME
        ]

        return _dot.render(name=name, nodes=nodes, edges=edges)
