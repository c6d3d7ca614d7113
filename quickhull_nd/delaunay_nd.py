"""
Delaunay triangulation in 1 to 4 dimensions by lifting onto a paraboloid.

Each N-D point p is lifted to (p, |p|^2) in N+1 dimensions. The lower convex
hull of the lifted points projects back onto the Delaunay triangulation of the
originals, so the work reduces to one `quickhull_nd` call plus a selection of
the downward-facing facets. Downward facets are those visible from a
viewpoint placed far below the paraboloid on the height axis.
"""
import logging

import torch

from .convex_hull import HullConfig, quickhull_nd
from .geometry_core import MAX_DIMENSIONS, NOISE_VALUE

logger = logging.getLogger(__name__)


def lift_to_paraboloid(points: torch.Tensor, noise_scale: float = NOISE_VALUE,
                       generator: torch.Generator | None = None) -> torch.Tensor:
    """
    Lifts N-D points onto the paraboloid w = |p|^2.

    The coordinates are first perturbed by uniform noise in [0, noise_scale);
    the height is the squared norm of the perturbed coordinates.

    Args:
        points (torch.Tensor): Tensor of shape (n, N).
        noise_scale (float, optional): Upper bound of the perturbation.
        generator (torch.Generator | None, optional): Noise source.

    Returns:
        torch.Tensor: float64 tensor of shape (n, N+1).
    """
    coords = points.detach().to(device="cpu", dtype=torch.float64)
    noise = torch.rand(coords.shape, generator=generator, dtype=torch.float64)
    coords = coords + noise_scale * noise
    heights = torch.sum(coords ** 2, dim=1, keepdim=True)
    return torch.cat([coords, heights], dim=1)


def lower_hull_viewpoint(lifted: torch.Tensor) -> torch.Tensor:
    """
    A point on the height axis that sees every lower-hull facet of `lifted`.

    The tangent plane at the highest lifted point (p0, w0) meets the height
    axis at w0 - 2|p0|^2; that crossing is pushed a further 1000 times its
    magnitude downwards to stay clear of round-off.

    Args:
        lifted (torch.Tensor): Lifted points, shape (n, N+1).

    Returns:
        torch.Tensor: float64 tensor of shape (N+1,): zeros except the last entry.
    """
    heights = lifted[:, -1]
    top = int(torch.argmax(heights))
    p0 = lifted[top, :-1]
    w0 = heights[top]
    w_optimal = w0 - 2.0 * torch.sum(p0 ** 2)
    w_optimal = w_optimal - 1000.0 * torch.abs(w_optimal)

    viewpoint = torch.zeros(lifted.shape[1], dtype=torch.float64)
    viewpoint[-1] = w_optimal
    return viewpoint


def delaunay_triangulation_nd(points: torch.Tensor, config: HullConfig | None = None,
                              generator: torch.Generator | None = None) -> torch.Tensor:
    """
    Computes the Delaunay triangulation of N-D points, 1 <= N <= MAX_DIMENSIONS - 1.

    Collinear (or coplanar) runs of points on the boundary of the point set
    lift to nearly vertical facets, some of which fall on the lower side of the
    perturbed hull. They come back as zero-volume sliver simplices alongside
    the proper triangulation; `validation.delaunay_diagnostics` reports them
    under `degenerate_simplices`.

    Args:
        points (torch.Tensor): Tensor of shape (n, N) with n >= N+2.
        config (HullConfig | None, optional): Parameters for the lifted hull
            build; its `noise_scale` also sets the lifting perturbation.
        generator (torch.Generator | None, optional): Noise source for both the
            lifting and the hull build.

    Returns:
        torch.Tensor: Long tensor of shape (m, N+1); each row holds the point
                      indices of one Delaunay simplex.

    Raises:
        ValueError: If points is not a 2D tensor or N is out of range.
        DegenerateInputError, ResourceLimitError: Propagated from the hull build.
    """
    if not isinstance(points, torch.Tensor): raise ValueError("Input points must be a PyTorch tensor.")
    if points.ndim != 2: raise ValueError("Input points tensor must be 2-dimensional (N, D).")
    dim = points.shape[1]
    if not 1 <= dim <= MAX_DIMENSIONS - 1:
        raise ValueError(f"Delaunay dimension must be between 1 and {MAX_DIMENSIONS - 1}, got {dim}.")
    config = config if config is not None else HullConfig()

    lifted = lift_to_paraboloid(points, config.noise_scale, generator)
    hull = quickhull_nd(lifted, config, generator)

    viewpoint = lower_hull_viewpoint(lifted)
    seen = torch.matmul(hull.normals, viewpoint) + hull.offsets > 0.0
    simplices = hull.simplices[seen]
    logger.debug("Delaunay N=%d: %d of %d lifted facets are on the lower hull",
                 dim, simplices.shape[0], hull.simplices.shape[0])
    return simplices
