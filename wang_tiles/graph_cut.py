"""
Minimum-cut seam extraction on a 4-connected pixel grid.

Two overlapping patches A ("old", kept) and B ("new", taken) are stitched
along the cut that minimises the colour mismatch it passes through, as in
Kwatra et al., "Graphcut Textures" (SIGGRAPH 2003). The max-flow problem is
solved with ``scipy.sparse.csgraph.maximum_flow``; the partition is the set
of nodes still reachable from the source in the residual graph.
"""

from typing import NamedTuple, Optional, Union

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import breadth_first_order, maximum_flow

# Noise penalty selecting the bias that always replaces free pixels
ALWAYS_REPLACE = 'always'

NoisePenalty = Optional[Union[int, str]]


class CutResult(NamedTuple):
    take: np.ndarray     # True where the pixel ends on the sink ("take new") side
    cut_value: int       # Total capacity of the cut, equal to the max flow


def pixel_differences(old: np.ndarray, new: np.ndarray) -> np.ndarray:
    """Per-pixel L2 colour difference ||A(p) - B(p)||."""
    diff = old.astype(np.float64) - new.astype(np.float64)
    if diff.ndim == 2:
        return np.abs(diff)
    return np.sqrt(np.sum(diff ** 2, axis=2))


def seam_capacities(old: np.ndarray, new: np.ndarray):
    """Integer capacities of the horizontal and vertical grid edges.

    The cost of cutting between neighbours p and q is
    ``||A(p)-B(p)|| + ||A(q)-B(q)||``, plus one so that every edge has a
    positive capacity and shorter seams win among equal-cost ones.

    Returns:
        (right, down): capacities of edges (r, c)-(r, c+1) with shape
        (h, w-1) and of edges (r, c)-(r+1, c) with shape (h-1, w).
    """
    d = pixel_differences(old, new)
    right = np.rint(d[:, :-1] + d[:, 1:]).astype(np.int64) + 1
    down = np.rint(d[:-1, :] + d[1:, :]).astype(np.int64) + 1
    return right, down


def grid_min_cut(right: np.ndarray, down: np.ndarray, source_seeds: np.ndarray,
                 sink_seeds: np.ndarray, sink_bias: Optional[np.ndarray] = None) -> CutResult:
    """Solves an s-t minimum cut over a 4-connected grid.

    Args:
        right: (h, w-1) capacities between horizontal neighbours.
        down: (h-1, w) capacities between vertical neighbours.
        source_seeds: (h, w) bool, pixels tied to the source with infinite capacity.
        sink_seeds: (h, w) bool, pixels tied to the sink with infinite capacity.
        sink_bias: Optional (h, w) int capacities of extra pixel->sink links,
                   a per-pixel cost for leaving the pixel on the source side.

    Returns:
        CutResult with the sink-side pixels and the cut value.
    """
    h, w = source_seeds.shape
    if np.any(source_seeds & sink_seeds):
        raise ValueError("A pixel cannot be seeded to both the source and the sink.")

    n = h * w
    source, sink = n, n + 1
    ids = np.arange(n).reshape(h, w)

    tails = []
    heads = []
    caps = []

    def add_edges(a, b, capacity):
        tails.append(a.ravel())
        heads.append(b.ravel())
        caps.append(capacity.ravel())

    # Undirected neighbour edges become a pair of arcs
    add_edges(ids[:, :-1], ids[:, 1:], right)
    add_edges(ids[:, 1:], ids[:, :-1], right)
    add_edges(ids[:-1, :], ids[1:, :], down)
    add_edges(ids[1:, :], ids[:-1, :], down)

    finite_total = int(right.sum() + down.sum())
    if sink_bias is not None:
        finite_total += int(sink_bias.sum())
    infinity = finite_total + 1
    if infinity >= np.iinfo(np.int32).max:
        raise ValueError("Seam capacities overflow the int32 range of the max-flow solver.")

    src_nodes = ids[source_seeds]
    add_edges(np.full(src_nodes.shape, source), src_nodes, np.full(src_nodes.shape, infinity))
    sink_nodes = ids[sink_seeds]
    add_edges(sink_nodes, np.full(sink_nodes.shape, sink), np.full(sink_nodes.shape, infinity))

    if sink_bias is not None:
        biased = (sink_bias > 0) & ~sink_seeds & ~source_seeds
        add_edges(ids[biased], np.full(int(biased.sum()), sink), sink_bias[biased])

    tails = np.concatenate(tails)
    heads = np.concatenate(heads)
    caps = np.concatenate(caps).astype(np.int32)

    graph = csr_matrix((caps, (tails, heads)), shape=(n + 2, n + 2), dtype=np.int32)
    graph.sum_duplicates()
    graph.sort_indices()

    flow = maximum_flow(graph, source, sink)

    # Arcs with spare capacity left after the max flow
    residual = (graph - flow.flow).tocsr()
    residual.data = (residual.data > 0).astype(np.int32)
    residual.eliminate_zeros()

    reachable = breadth_first_order(residual, source, directed=True, return_predecessors=False)
    on_source_side = np.zeros(n + 2, dtype=bool)
    on_source_side[reachable] = True

    take = ~on_source_side[:n].reshape(h, w)
    return CutResult(take=take, cut_value=int(flow.flow_value))


def seam_cut(old: np.ndarray, new: np.ndarray, keep: np.ndarray, take: np.ndarray,
             noise_penalty: NoisePenalty = None, free: Optional[np.ndarray] = None) -> CutResult:
    """Finds the minimum-cost seam between an old patch and a new one.

    Args:
        old: The patch currently in the image ("keep" side).
        new: The matched exemplar patch ("take" side).
        keep: Pixels forced to keep the old content.
        take: Pixels forced to take the new content.
        noise_penalty: Cost of leaving a ``free`` pixel with the old content.
                       None picks ``median_noise_penalty``, ``ALWAYS_REPLACE``
                       picks ``replacing_noise_penalty``, 0 disables it.
        free: Pixels whose old content is a placeholder; they lean towards
              the new patch by ``noise_penalty``.

    Returns:
        CutResult, ``take`` marking pixels that receive the new content.
    """
    right, down = seam_capacities(old, new)
    sink_bias = None
    if free is not None:
        if noise_penalty is None:
            noise_penalty = median_noise_penalty(right, down)
        elif noise_penalty == ALWAYS_REPLACE:
            noise_penalty = replacing_noise_penalty(right, down)
        if noise_penalty > 0:
            sink_bias = np.where(free, int(noise_penalty), 0).astype(np.int64)
    return grid_min_cut(right, down, keep, take, sink_bias=sink_bias)


def median_noise_penalty(right: np.ndarray, down: np.ndarray) -> int:
    """A bias the size of a typical neighbour edge of the patch.

    A free pixel is taken when that is cheaper than one typical seam edge
    around it, so the cut can still leave free pixels behind along
    expensive boundaries.
    """
    capacities = np.concatenate([right.ravel(), down.ravel()])
    if capacities.size == 0:
        return 1
    return max(1, int(np.rint(np.median(capacities))))


def replacing_noise_penalty(right: np.ndarray, down: np.ndarray) -> int:
    """A bias larger than any four neighbour edges combined.

    With this penalty flipping a free pixel to the take side always lowers the
    cut, so placeholder pixels never survive a cut.
    """
    largest = 0
    if right.size:
        largest = max(largest, int(right.max()))
    if down.size:
        largest = max(largest, int(down.max()))
    return 4 * largest + 1
