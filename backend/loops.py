import logging

logger = logging.getLogger(__name__)


def format_edges(edges):
    if not edges:
        return ''
    return ' -> '.join([edges[0].source] + [e.destination for e in edges])


def find_all_loops(graph, logger=logger):
    """
    Find every simple directed cycle of ``graph``.

    Each cycle is a list of edges whose first source is the last destination.
    A DFS is rooted at every node in graph order; once a root's search is
    complete the root is excluded from later searches, so a cycle is reported
    once, from its first node in graph order.
    """
    cycles = []
    stack = []
    done = set()

    def visit(node, root, on_path):
        for edge in node.outgoing_edges:
            nxt = graph.lookup(edge.destination)
            if nxt is None:
                logger.debug("Skipping edge %s: unknown node %s", edge.id, edge.destination)
                continue
            if nxt.id == root:
                cycles.append(stack + [edge])
                continue
            if nxt.id in on_path or nxt.id in done:
                continue
            stack.append(edge)
            on_path.add(nxt.id)
            try:
                visit(nxt, root, on_path)
            finally:
                on_path.discard(nxt.id)
                stack.pop()

    for node in graph:
        visit(node, node.id, {node.id})
        done.add(node.id)

    logger.debug("Found %d loops", len(cycles))
    for cycle in cycles:
        logger.debug("  %s", format_edges(cycle))
    return cycles


def loop_nodes(edges):
    # every node of a closed walk is the destination of exactly one of its edges
    return {e.destination for e in edges}


def find_non_touching(loops, logger=logger):
    """
    Group the loops into sets of k mutually non-touching loops, k >= 2.

    Returns ``{k: [edges, ...]}`` where each entry concatenates the edges of
    its k member loops. Building stops at the first k without any set.
    """
    levels = {1: [list(loop) for loop in loops]}
    seen = set()

    for k in range(2, len(loops) + 1):
        found = []
        for combo in levels[k - 1]:
            combo_nodes = loop_nodes(combo)
            for loop in loops:
                if combo_nodes & loop_nodes(loop):
                    continue
                candidate = loop + combo
                key = tuple(sorted(e.id for e in candidate))
                if key in seen:
                    continue
                seen.add(key)
                found.append(candidate)
        if not found:
            break
        levels[k] = found
        logger.debug("%d sets of %d non-touching loops", len(found), k)

    del levels[1]
    return levels
