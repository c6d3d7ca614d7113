"""
Computes circumspheres of simplices in any dimension.

The circumsphere of an N-simplex (N+1 vertices in N dimensions) is the unique
sphere through all of its vertices: a circle for a triangle in 2D, a sphere for
a tetrahedron in 3D. These are used to check the empty-circumsphere property of
Delaunay triangulations produced by `delaunay_nd`.

Degenerate simplices (collinear, coplanar, ...) are detected with `EPSILON`
from `geometry_core.py` and reported as `None` rather than raising.
"""
import torch

from .geometry_core import EPSILON as EPSILON_GEOMETRY


def compute_simplex_circumsphere(vertices: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor] | tuple[None, None]:
    """
    Computes the circumcenter and squared circumradius of an N-simplex.

    The center c satisfies |c - p_i| = |c - p_0| for every vertex, which after
    expanding becomes the linear system 2 (p_i - p_0) . c = |p_i|^2 - |p_0|^2,
    i = 1..N. The system is solved in float64.

    Args:
        vertices (torch.Tensor): Tensor of shape (N+1, N) with the simplex vertices.

    Returns:
        tuple[torch.Tensor, torch.Tensor] | tuple[None, None]:
            - center (torch.Tensor): Circumcenter, shape (N,), in the input dtype.
            - squared_radius (torch.Tensor): Scalar float64 squared circumradius.
            Returns `(None, None)` if the simplex is degenerate within `EPSILON_GEOMETRY`.

    Raises:
        ValueError: If `vertices` does not have shape (N+1, N).
    """
    if vertices.ndim != 2 or vertices.shape[0] != vertices.shape[1] + 1:
        raise ValueError("A simplex in N dimensions needs exactly N+1 vertices, shape (N+1, N).")

    points_f64 = vertices.to(torch.float64) # Promote for precision
    p0 = points_f64[0]
    edges = points_f64[1:] - p0

    # The edge matrix is singular exactly when the simplex has zero volume.
    if torch.abs(torch.linalg.det(edges)) < EPSILON_GEOMETRY:
        return None, None

    A_matrix = 2.0 * edges
    B_vector = torch.sum(points_f64[1:] ** 2, dim=1) - torch.sum(p0 ** 2)
    center = torch.linalg.solve(A_matrix, B_vector)
    squared_radius = torch.sum((center - p0) ** 2)
    return center.to(dtype=vertices.dtype), squared_radius


def is_point_in_circumsphere(point: torch.Tensor, vertices: torch.Tensor,
                             tol: float = EPSILON_GEOMETRY) -> bool:
    """
    Checks whether a point lies strictly inside the circumsphere of a simplex.

    Args:
        point (torch.Tensor): Tensor of shape (N,).
        vertices (torch.Tensor): Simplex vertices, shape (N+1, N).
        tol (float, optional): The point counts as inside only if its squared
            distance to the center is below the squared radius by more than `tol`.

    Returns:
        bool: True if strictly inside. False on or outside the sphere, and for
              degenerate simplices.
    """
    center, squared_radius = compute_simplex_circumsphere(vertices)
    if center is None:
        return False
    squared_dist = torch.sum((point.to(torch.float64) - center.to(torch.float64)) ** 2)
    return bool(squared_dist < squared_radius - tol)
