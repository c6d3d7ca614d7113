"""
Consistency checks for hulls and Delaunay triangulations.

Both checks return a dictionary of diagnostics in which empty lists mean that
everything is in order, so callers (and the test suite) can report precisely
which facet or simplex is at fault instead of a bare pass/fail.
"""
import itertools
import logging

import torch

from .circumsphere_calculations import compute_simplex_circumsphere

logger = logging.getLogger(__name__)

DIAGNOSTIC_TOLERANCE = 1e-5 # Slack for the perturbation applied during a build.


def _bad_index_rows(simplices: torch.Tensor, num_points: int) -> list[int]:
    """Rows with an index outside [0, num_points) or a repeated index."""
    bad = []
    for row, indices in enumerate(simplices.tolist()):
        if any(i < 0 or i >= num_points for i in indices) or len(set(indices)) != len(indices):
            bad.append(row)
    return bad


def hull_diagnostics(points: torch.Tensor, hull, tol: float = DIAGNOSTIC_TOLERANCE) -> dict:
    """
    Checks a convex hull against the points it was built from.

    Checks performed:
      - every facet references d distinct indices in [0, n);
      - every ridge (d-1 vertices) is shared by exactly two facets;
      - every input point lies on the inner side of every facet plane.

    Args:
        points (torch.Tensor): Input points, shape (n, d).
        hull (HullResult | ConvexHull): Anything with `simplices`, `normals`
            and `offsets` attributes.
        tol (float, optional): Allowed positive distance to a facet plane.

    Returns:
        dict: Keys `num_facets`, `num_vertices`, `bad_facets` (row indices),
              `bad_ridges` ((ridge, multiplicity) pairs) and
              `containment_violations` ((facet, point) pairs).
    """
    simplices = hull.simplices
    num_points = points.shape[0]
    bad_facets = _bad_index_rows(simplices, num_points)

    ridge_count: dict[tuple[int, ...], int] = {}
    for indices in simplices.tolist():
        for ridge in itertools.combinations(sorted(indices), len(indices) - 1):
            ridge_count[ridge] = ridge_count.get(ridge, 0) + 1
    bad_ridges = [(ridge, k) for ridge, k in ridge_count.items() if k != 2]

    coords = points.detach().to(device="cpu", dtype=torch.float64)
    dists = torch.matmul(hull.normals, coords.T) + hull.offsets.unsqueeze(1) # (m, n)
    violations = [tuple(pair) for pair in torch.nonzero(dists > tol).tolist()]

    return {
        "num_facets": simplices.shape[0],
        "num_vertices": int(torch.unique(simplices).numel()),
        "bad_facets": bad_facets,
        "bad_ridges": bad_ridges,
        "containment_violations": violations,
    }


def delaunay_diagnostics(points: torch.Tensor, simplices: torch.Tensor,
                         tol: float = DIAGNOSTIC_TOLERANCE) -> dict:
    """
    Checks the empty-circumsphere property of a Delaunay triangulation.

    Args:
        points (torch.Tensor): Input points, shape (n, N).
        simplices (torch.Tensor): Simplices, shape (m, N+1).
        tol (float, optional): A point violates a simplex only if its squared
            distance to the circumcenter is below the squared radius by more than `tol`.

    Returns:
        dict: Keys `num_simplices`, `bad_simplices` (invalid indices),
              `degenerate_simplices` (zero volume) and `circumsphere_violations`
              ((simplex, point) pairs).
    """
    coords = points.detach().to(device="cpu", dtype=torch.float64)
    bad_simplices = _bad_index_rows(simplices, coords.shape[0])
    degenerate = []
    violations = []
    for row, indices in enumerate(simplices.tolist()):
        if row in bad_simplices:
            continue
        center, squared_radius = compute_simplex_circumsphere(coords[indices])
        if center is None:
            degenerate.append(row)
            continue
        squared_dists = torch.sum((coords - center) ** 2, dim=1)
        inside = squared_dists < squared_radius - tol
        inside[indices] = False
        violations.extend((row, point) for point in torch.nonzero(inside).flatten().tolist())

    if degenerate:
        logger.warning("%d of %d Delaunay simplices are degenerate.", len(degenerate), simplices.shape[0])
    return {
        "num_simplices": simplices.shape[0],
        "bad_simplices": bad_simplices,
        "degenerate_simplices": degenerate,
        "circumsphere_violations": violations,
    }
