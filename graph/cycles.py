"""Cycle detection over the dependency graph."""

from typing import Dict, Iterator, List

from .model import DependencyGraph

_ON_STACK = 1
_DONE = 2


def detect_cycles(graph: DependencyGraph) -> List[List[str]]:
    """
    Find cycles with an iterative depth-first traversal.

    Roots are taken in node order. Nodes are unvisited, on the current
    stack, or done; done nodes are never explored again. Reaching a node
    that is on the stack emits the path from that node's stack position to
    the current node, closed by repeating the node, e.g. ``[A, B, C, A]``.

    Rotations of the same cycle found from different roots are not merged.

    Args:
        graph: The dependency graph.

    Returns:
        List of closed paths (first element equals last).
    """
    adjacency = graph.adjacency()
    state: Dict[str, int] = {}
    cycles: List[List[str]] = []

    for root in graph.nodes:
        if root in state:
            continue

        path: List[str] = [root]
        position: Dict[str, int] = {root: 0}
        stack: List[Iterator[str]] = [iter(adjacency.get(root, ()))]
        state[root] = _ON_STACK

        while stack:
            descended = False
            for neighbor in stack[-1]:
                neighbor_state = state.get(neighbor)
                if neighbor_state == _ON_STACK:
                    cycles.append(path[position[neighbor]:] + [neighbor])
                elif neighbor_state is None:
                    state[neighbor] = _ON_STACK
                    position[neighbor] = len(path)
                    path.append(neighbor)
                    stack.append(iter(adjacency.get(neighbor, ())))
                    descended = True
                    break

            if not descended:
                stack.pop()
                finished = path.pop()
                del position[finished]
                state[finished] = _DONE

    return cycles
