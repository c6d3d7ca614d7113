import logging

import torch
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Polygon as MplPolygon
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

# Project-specific imports
from .convex_hull import quickhull_3d
from .delaunay_nd import delaunay_triangulation_nd

logger = logging.getLogger(__name__)


def plot_convex_hull_3d(
    points: torch.Tensor,
    simplices: torch.Tensor | None = None,
    ax=None,
    title: str = "3D Convex Hull"
):
    """
    Plots a 3D point set together with its convex hull.

    Args:
        points (torch.Tensor): Tensor of shape (N, 3).
        simplices (torch.Tensor | None, optional): Long tensor of shape (M, 3) with
            the hull facets. If None, it is computed with `quickhull_3d`.
        ax (matplotlib.axes.Axes | None, optional): Existing 3D axes to plot on.
                                                   If None, a new figure and 3D axes are created.
        title (str, optional): Title for the plot.

    Returns:
        matplotlib.axes.Axes | None: The axes drawn on, or None if there was nothing to draw.
    """
    if points.shape[0] == 0:
        logger.warning("No points provided for the 3D convex hull plot.")
        return None

    if simplices is None:
        simplices = quickhull_3d(points)

    if ax is None:
        fig = plt.figure()
        ax = fig.add_subplot(111, projection='3d')
    elif not hasattr(ax, 'plot3D'):
        raise ValueError("Provided axes `ax` is not a 3D projection.")

    points_np = points.detach().cpu().to(torch.float64).numpy()
    ax.scatter(points_np[:, 0], points_np[:, 1], points_np[:, 2], color='blue', label='Points')

    if simplices.shape[0] > 0:
        facets = points_np[simplices.detach().cpu().long().numpy()] # (M, 3, 3)
        poly_collection = Poly3DCollection(list(facets),
                                           edgecolors='k',
                                           linewidths=0.5,
                                           facecolors=(0.2, 0.5, 0.8, 0.25))
        ax.add_collection3d(poly_collection)
    else:
        logger.warning("Convex hull has no facets to draw.")

    ax.set_xlabel("X-axis")
    ax.set_ylabel("Y-axis")
    ax.set_zlabel("Z-axis")
    ax.set_title(title)

    # Cube-shaped limits so the hull is not distorted.
    min_coords = np.min(points_np, axis=0)
    max_coords = np.max(points_np, axis=0)
    center = (min_coords + max_coords) / 2
    plot_range = np.max(max_coords - min_coords) * 0.6
    if plot_range < 1e-1: plot_range = 1.0
    ax.set_xlim(center[0] - plot_range, center[0] + plot_range)
    ax.set_ylim(center[1] - plot_range, center[1] + plot_range)
    ax.set_zlim(center[2] - plot_range, center[2] + plot_range)

    ax.legend()
    return ax


def plot_delaunay_2d(
    points: torch.Tensor,
    simplices: torch.Tensor | None = None,
    ax=None,
    title: str = "2D Delaunay Triangulation"
):
    """
    Plots a 2D point set and the outlines of its Delaunay triangles.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).
        simplices (torch.Tensor | None, optional): Long tensor of shape (M, 3).
            If None, it is computed with `delaunay_triangulation_nd`.
        ax (matplotlib.axes.Axes | None, optional): Existing axes to plot on.
                                                   If None, a new figure and axes are created.
        title (str, optional): Title for the plot.

    Returns:
        matplotlib.axes.Axes | None: The axes drawn on, or None if there was nothing to draw.
    """
    if points.shape[0] == 0:
        logger.warning("No points provided for the Delaunay plot.")
        return None

    if simplices is None:
        simplices = delaunay_triangulation_nd(points)

    if ax is None:
        fig, ax = plt.subplots()

    points_np = points.detach().cpu().to(torch.float64).numpy()
    ax.plot(points_np[:, 0], points_np[:, 1], 'o', label='Points', color='blue')

    for i, triangle in enumerate(simplices.detach().cpu().long().numpy()):
        polygon = MplPolygon(points_np[triangle], edgecolor='black', fill=False,
                             label='Triangles' if i == 0 else None)
        ax.add_patch(polygon)

    ax.autoscale_view()
    ax.set_xlabel("X-axis")
    ax.set_ylabel("Y-axis")
    ax.set_title(title)
    ax.legend()
    ax.set_aspect('equal', adjustable='box')
    return ax


if __name__ == '__main__': # Example Usage
    example_points_3d = torch.rand((30, 3)) * 5
    plot_convex_hull_3d(example_points_3d, title="Sample 3D Convex Hull")
    plt.show()

    example_points_2d = torch.rand((20, 2)) * 10
    plot_delaunay_2d(example_points_2d, title="Sample 2D Delaunay Triangulation")
    plt.show()
