"""
Incremental (quickhull) convex hull construction in 3 and N dimensions.

This module provides:
- `HullConfig`, the tunable parameters of a build (perturbation size, span
  tolerance, facet ceiling, visibility evaluation strategy).
- `FacetTable`, a growable arena of oriented facets whose vertex indices,
  normals, offsets and alive flags are stored in row-aligned tensors.
- `QuickHullBuilder`, the state machine that builds a hull from a point set:
  initial simplex, then one insertion per candidate point (visibility test,
  horizon extraction, re-triangulation and orientation repair).
- `quickhull_3d` / `quickhull_nd`, the public entry points, and `ConvexHull`,
  a convenience class exposing vertices, plane equations, area and volume.

Points are perturbed by a tiny uniform noise before the build to break exact
coplanarities and duplicates. Output indices always refer to the caller's
original, unperturbed point array.
"""
import enum
import logging
import math
from dataclasses import dataclass
from typing import NamedTuple

import torch

from .errors import DegenerateInputError, OrientationFailure, ResourceLimitError
from .geometry_core import (
    MAX_DIMENSIONS, MAX_NUM_FACETS, NOISE_VALUE, SPAN_TOLERANCE,
    plane_coefficients, signed_volume,
)
from .ordering import is_member, sort_with_indices

logger = logging.getLogger(__name__)


@dataclass
class HullConfig:
    """Parameters of a single hull build."""

    noise_scale: float = NOISE_VALUE  # perturbation drawn from U[0, noise_scale)
    span_tolerance: float = SPAN_TOLERANCE  # minimum max-min extent per axis
    max_facets: int = MAX_NUM_FACETS  # live facet ceiling
    use_matmul: bool = True  # torch.matmul for point-to-facet distances; False uses a plain loop


class BuildState(enum.Enum):
    INIT = "init"
    SIMPLEX_BUILT = "simplex_built"
    ITERATING = "iterating"
    DONE = "done"
    FAILED = "failed"


class HullResult(NamedTuple):
    """Facets of a finished hull: vertex indices and outward plane equations."""

    simplices: torch.Tensor # (m, d) long, indices into the input points
    normals: torch.Tensor # (m, d) float64, unit outward normals
    offsets: torch.Tensor # (m,) float64, dot(normal, p) + offset <= 0 inside


class Ridge(NamedTuple):
    """A horizon ridge and the two facets it separates."""

    visible_id: int
    hidden_id: int
    vertices: list[int]


class FacetTable:
    """
    Growable arena of oriented facets addressed by integer ids.

    All per-facet data lives in row-aligned tensors that double in capacity
    when full, so vertices, normals and offsets always grow and shrink together.
    Removing a facet only clears its alive flag; ids stay valid until
    `compact` is called, which the builder does between insertions.

    Attributes:
        dim (int): Number of vertices per facet (the ambient dimension).
        num_alive (int): Number of live facets.
    """

    def __init__(self, dim: int, capacity: int = 64):
        capacity = max(capacity, 1)
        self.dim = dim
        self.num_alive = 0
        self._size = 0
        self._vertices = torch.zeros((capacity, dim), dtype=torch.long)
        self._normals = torch.zeros((capacity, dim), dtype=torch.float64)
        self._offsets = torch.zeros(capacity, dtype=torch.float64)
        self._alive = torch.zeros(capacity, dtype=torch.bool)

    def __len__(self) -> int:
        return self.num_alive

    @property
    def capacity(self) -> int:
        return self._alive.shape[0]

    @staticmethod
    def _resized(tensor: torch.Tensor, capacity: int) -> torch.Tensor:
        grown = torch.zeros((capacity,) + tuple(tensor.shape[1:]), dtype=tensor.dtype)
        grown[:tensor.shape[0]] = tensor
        return grown

    def _grow(self):
        new_capacity = 2 * self.capacity
        self._vertices = self._resized(self._vertices, new_capacity)
        self._normals = self._resized(self._normals, new_capacity)
        self._offsets = self._resized(self._offsets, new_capacity)
        self._alive = self._resized(self._alive, new_capacity)

    def add(self, vertices: list[int], normal: list[float], offset: float) -> int:
        """Appends a live facet and returns its id."""
        if self._size == self.capacity:
            self._grow()
        fid = self._size
        self._vertices[fid] = torch.tensor(vertices, dtype=torch.long)
        self._normals[fid] = torch.tensor(normal, dtype=torch.float64)
        self._offsets[fid] = offset
        self._alive[fid] = True
        self._size += 1
        self.num_alive += 1
        return fid

    def remove(self, facet_ids: torch.Tensor):
        """Marks the given (distinct, live) facets as dead."""
        self._alive[facet_ids] = False
        self.num_alive -= int(facet_ids.numel())

    def flip(self, fid: int):
        """Reverses a facet: swaps its last two vertices and negates its plane."""
        last = self.dim - 1
        self._vertices[fid, [last - 1, last]] = self._vertices[fid, [last, last - 1]]
        self._normals[fid] = -self._normals[fid]
        self._offsets[fid] = -self._offsets[fid]

    def facet_vertices(self, fid: int) -> list[int]:
        return self._vertices[fid].tolist()

    def vertex_rows(self, facet_ids) -> torch.Tensor:
        return self._vertices[facet_ids]

    def active_ids(self) -> torch.Tensor:
        return torch.nonzero(self._alive[:self._size], as_tuple=False).flatten()

    def hull_vertices(self) -> torch.Tensor:
        """Sorted unique point indices referenced by live facets."""
        return torch.unique(self._vertices[self.active_ids()])

    def distances(self, point: torch.Tensor, use_matmul: bool = True):
        """
        Signed distances from a point to every live facet plane.

        Args:
            point (torch.Tensor): Coordinates, shape (d,), float64.
            use_matmul (bool, optional): Evaluate all planes with one
                `torch.matmul`; otherwise loop over the facets in Python.

        Returns:
            Tuple[torch.Tensor, torch.Tensor]: (facet ids, distances), both of shape (m,).
        """
        ids = self.active_ids()
        normals = self._normals[ids]
        offsets = self._offsets[ids]
        if use_matmul:
            return ids, torch.matmul(normals, point) + offsets
        coords = point.tolist()
        dists = []
        for normal, offset in zip(normals.tolist(), offsets.tolist()):
            total = offset
            for n_k, p_k in zip(normal, coords):
                total += n_k * p_k
            dists.append(total)
        return ids, torch.tensor(dists, dtype=torch.float64)

    def compact(self):
        """Drops dead rows once they outnumber the live ones. Invalidates ids."""
        if self._size - self.num_alive <= self.num_alive:
            return
        ids = self.active_ids()
        count = ids.numel()
        self._vertices[:count] = self._vertices[ids]
        self._normals[:count] = self._normals[ids]
        self._offsets[:count] = self._offsets[ids]
        self._alive[:count] = True
        self._alive[count:] = False
        self._size = count

    def export(self) -> HullResult:
        ids = self.active_ids()
        return HullResult(self._vertices[ids].clone(), self._normals[ids].clone(), self._offsets[ids].clone())


class QuickHullBuilder:
    """
    Builds the convex hull of one point set.

    The build walks the states INIT -> SIMPLEX_BUILT -> ITERATING -> DONE, or
    ends in FAILED when an error is raised. A builder runs once; all working
    data is owned by the instance and discarded on failure.

    Attributes:
        points (torch.Tensor): The caller's points as float64, shape (N, d).
        dim (int): Dimension d of the points.
        config (HullConfig): Build parameters.
        state (BuildState): Current state of the build.
    """

    def __init__(self, points: torch.Tensor, config: HullConfig | None = None,
                 generator: torch.Generator | None = None):
        """
        Args:
            points (torch.Tensor): Tensor of shape (N, d), 2 <= d <= MAX_DIMENSIONS.
            config (HullConfig | None, optional): Build parameters. Defaults to `HullConfig()`.
            generator (torch.Generator | None, optional): Source of the perturbation
                noise. Defaults to torch's global generator.

        Raises:
            ValueError: If points is not a 2D tensor or d is out of range.
        """
        if not isinstance(points, torch.Tensor): raise ValueError("Input points must be a PyTorch tensor.")
        if points.ndim != 2: raise ValueError("Input points tensor must be 2-dimensional (N, D).")
        num_points, dim = points.shape
        if not 2 <= dim <= MAX_DIMENSIONS:
            raise ValueError(f"Point dimension must be between 2 and {MAX_DIMENSIONS}, got {dim}.")

        self.points = points.detach().to(device="cpu", dtype=torch.float64)
        self.num_points = num_points
        self.dim = dim
        self.config = config if config is not None else HullConfig()
        self.generator = generator
        self.state = BuildState.INIT
        self.table = FacetTable(dim)

        self.coords: torch.Tensor | None = None # perturbed coordinates (N, d)
        self.span: torch.Tensor | None = None # per-axis extent of the perturbed points
        self._rows: list[list[float]] = [] # homogeneous working points (coords + trailing 1)

    def _set_state(self, state: BuildState):
        logger.debug("quickhull d=%d n=%d: %s -> %s", self.dim, self.num_points, self.state.name, state.name)
        self.state = state

    def build(self) -> HullResult:
        """
        Runs the whole construction.

        Returns:
            HullResult: Live facets with their outward plane equations.

        Raises:
            DegenerateInputError: Too few points, or zero span along an axis.
            ResourceLimitError: The live facet count exceeded `config.max_facets`.
            OrientationFailure: A new facet could not be oriented.
        """
        if self.state is not BuildState.INIT:
            raise RuntimeError("QuickHullBuilder.build() can only be called once.")
        try:
            self._prepare_points()
            self._build_initial_simplex()
            self._set_state(BuildState.ITERATING)
            inserted = 0
            for point_idx in self._candidate_queue():
                if self._insert_point(point_idx):
                    inserted += 1
                self.table.compact()
        except Exception as exc:
            self._set_state(BuildState.FAILED)
            self.table = FacetTable(self.dim)
            logger.warning("Convex hull construction failed (d=%d, n=%d): %s", self.dim, self.num_points, exc)
            raise

        self._set_state(BuildState.DONE)
        result = self.table.export()
        logger.debug("quickhull d=%d: %d points inserted after the simplex, %d facets",
                     self.dim, inserted, result.simplices.shape[0])
        return result

    def _prepare_points(self):
        """Validates the point set and creates the perturbed working points."""
        dim = self.dim
        if self.num_points < dim + 1:
            raise DegenerateInputError(
                f"A {dim}-D hull needs at least {dim + 1} points, got {self.num_points}.")

        raw_span = self.points.max(dim=0).values - self.points.min(dim=0).values
        flat_axes = torch.nonzero(raw_span < self.config.span_tolerance).flatten().tolist()
        if flat_axes:
            raise DegenerateInputError(
                f"Input points do not span all {dim} dimensions (zero span along axes {flat_axes}).")

        noise = torch.rand(self.points.shape, generator=self.generator, dtype=torch.float64)
        self.coords = self.points + self.config.noise_scale * noise
        self.span = self.coords.max(dim=0).values - self.coords.min(dim=0).values
        ones = torch.ones((self.num_points, 1), dtype=torch.float64)
        self._rows = torch.cat([self.coords, ones], dim=1).tolist()

    def _facet_volume(self, vertices: list[int], witness: int) -> float:
        return signed_volume([self._rows[v] for v in vertices] + [self._rows[witness]])

    def _add_facet(self, vertices: list[int]) -> int:
        normal, offset = plane_coefficients([self._rows[v] for v in vertices])
        return self.table.add(vertices, normal, offset)

    def _build_initial_simplex(self):
        """
        Creates the d+1 facets of the simplex spanned by the first d+1 points.

        Facet k leaves out vertex k and is oriented so that vertex k lies on
        its inner side.
        """
        simplex = list(range(self.dim + 1))
        for omitted in simplex:
            vertices = [v for v in simplex if v != omitted]
            fid = self._add_facet(vertices)
            volume = self._facet_volume(vertices, omitted)
            if volume < 0.0:
                self.table.flip(fid)
            elif volume == 0.0:
                logger.warning("Initial simplex is flat: facet %s is coplanar with point %d.", vertices, omitted)
        self._set_state(BuildState.SIMPLEX_BUILT)

    def _candidate_queue(self) -> list[int]:
        """Remaining points ordered by decreasing normalized distance from their centroid."""
        first = self.dim + 1
        remaining = self.coords[first:]
        if remaining.shape[0] == 0:
            return []
        centre = remaining.mean(dim=0)
        relative = torch.sum(((remaining - centre) / self.span) ** 2, dim=1)
        _, order = sort_with_indices(relative, descending=True)
        return (order + first).tolist()

    def _insert_point(self, point_idx: int) -> bool:
        """
        Adds one point to the hull. Returns False if it was already inside.
        """
        ids, dists = self.table.distances(self.coords[point_idx], self.config.use_matmul)
        visible = dists > 0.0
        if not bool(visible.any()):
            return False

        visible_ids = ids[visible]
        hidden_ids = ids[~visible]
        horizon = self._extract_horizon(visible_ids, hidden_ids)
        if not horizon:
            raise OrientationFailure(f"Point {point_idx} sees every facet; there is no horizon to rebuild from.")

        self.table.remove(visible_ids)
        new_ids = []
        for ridge in horizon:
            new_ids.append(self._add_facet(ridge.vertices + [point_idx]))
            if self.table.num_alive > self.config.max_facets:
                raise ResourceLimitError(
                    f"Facet count exceeded the limit of {self.config.max_facets} while inserting point {point_idx}.")

        hull_vertices = self.table.hull_vertices()
        for fid in new_ids:
            self._orient_facet(fid, hull_vertices)
        return True

    def _extract_horizon(self, visible_ids: torch.Tensor, hidden_ids: torch.Tensor) -> list[Ridge]:
        """
        Ridges shared by a visible and a non-visible facet.

        Two facets are neighbours when exactly d-1 of their vertices coincide;
        the shared vertices are kept in the order of the non-visible facet.
        """
        hidden_vertices = self.table.vertex_rows(hidden_ids)
        hidden_list = hidden_ids.tolist()
        horizon = []
        for vid in visible_ids.tolist():
            shared = is_member(hidden_vertices, self.table.vertex_rows(vid))
            neighbours = torch.nonzero(shared.sum(dim=1) == self.dim - 1).flatten().tolist()
            for k in neighbours:
                ridge_vertices = hidden_vertices[k][shared[k]].tolist()
                horizon.append(Ridge(vid, hidden_list[k], ridge_vertices))
        return horizon

    def _orient_facet(self, fid: int, hull_vertices: torch.Tensor):
        """
        Makes a new facet face away from the rest of the hull.

        Witnesses are hull vertices off the facet, tried in index order until
        one is not coplanar with it.
        """
        vertices = self.table.facet_vertices(fid)
        witnesses = hull_vertices[~is_member(hull_vertices, vertices)].tolist()
        for witness in witnesses:
            volume = self._facet_volume(vertices, witness)
            if volume == 0.0:
                continue
            if volume < 0.0:
                self.table.flip(fid)
                vertices = self.table.facet_vertices(fid)
                volume = self._facet_volume(vertices, witness)
                if not volume > 0.0:
                    raise OrientationFailure(
                        f"Facet {vertices} cannot be oriented against point {witness} (signed volume {volume!r}).")
            return
        raise OrientationFailure(f"Facet {vertices} is coplanar with every other hull vertex.")


def quickhull_nd(points: torch.Tensor, config: HullConfig | None = None,
                 generator: torch.Generator | None = None) -> HullResult:
    """
    Computes the convex hull of points in 2 to MAX_DIMENSIONS dimensions.

    Args:
        points (torch.Tensor): Tensor of shape (N, d) with N >= d+1.
        config (HullConfig | None, optional): Build parameters.
        generator (torch.Generator | None, optional): Perturbation noise source.

    Returns:
        HullResult:
            - simplices (torch.Tensor): (M, d) long, vertex indices of each facet
              into `points`.
            - normals (torch.Tensor): (M, d) float64 unit outward normals.
            - offsets (torch.Tensor): (M,) float64 plane offsets, so that
              dot(normal, p) + offset <= 0 for every point of the hull.

    Raises:
        ValueError: Malformed `points`.
        DegenerateInputError: Fewer than d+1 points, or zero span along an axis.
        ResourceLimitError: More than `config.max_facets` live facets.
    """
    return QuickHullBuilder(points, config, generator).build()


def quickhull_3d(points: torch.Tensor, config: HullConfig | None = None,
                 generator: torch.Generator | None = None) -> torch.Tensor:
    """
    Computes the convex hull of 3D points.

    Args:
        points (torch.Tensor): Tensor of shape (N, 3) with N >= 4.
        config (HullConfig | None, optional): Build parameters.
        generator (torch.Generator | None, optional): Perturbation noise source.

    Returns:
        torch.Tensor: Long tensor of shape (M, 3); each row holds the indices of an
                      outward-oriented triangular facet.

    Raises:
        ValueError: If `points` is not an (N, 3) tensor.
        DegenerateInputError: Fewer than 4 points, or the points do not span 3D.
        ResourceLimitError: More than `config.max_facets` live facets.
    """
    if not isinstance(points, torch.Tensor): raise ValueError("Input points must be a PyTorch tensor.")
    if points.ndim != 2 or points.shape[1] != 3: raise ValueError("Points must be 3D, shape (N, 3).")
    return QuickHullBuilder(points, config, generator).build().simplices


class ConvexHull:
    """
    Convex hull of a set of points in 2 to MAX_DIMENSIONS dimensions.

    Attributes:
        points (torch.Tensor): The input points.
        dim (int): Dimensionality of the points.
        simplices (torch.Tensor): (M, dim) long; vertex indices of each facet.
        normals (torch.Tensor): (M, dim) float64 unit outward normals.
        offsets (torch.Tensor): (M,) float64 plane offsets.
        vertices (torch.Tensor): Sorted unique indices of points on the hull.
        area (torch.Tensor): Total (dim-1)-measure of the facets (perimeter in 2D,
                             surface area in 3D).
        volume (torch.Tensor): dim-measure of the hull (area in 2D, volume in 3D).
    """
    def __init__(self, points: torch.Tensor, config: HullConfig | None = None,
                 generator: torch.Generator | None = None):
        result = quickhull_nd(points, config, generator)
        self.points = points
        self.dim = points.shape[1]
        self.simplices = result.simplices
        self.normals = result.normals
        self.offsets = result.offsets
        self.vertices = torch.unique(self.simplices)
        self._area, self._volume = self._compute_measures()

    def _compute_measures(self):
        coords = self.points.detach().to(device="cpu", dtype=torch.float64)
        facet_coords = coords[self.simplices] # (M, d, d)

        # Cone every facet from an interior point; the cones tile the hull.
        centre = coords[self.vertices].mean(dim=0)
        cone_volumes = torch.abs(torch.linalg.det(facet_coords - centre))
        volume = cone_volumes.sum() / math.factorial(self.dim)

        # Facet measure from the Gram determinant of its edge vectors.
        edges = facet_coords[:, 1:, :] - facet_coords[:, :1, :]
        gram = torch.matmul(edges, edges.transpose(1, 2))
        facet_measures = torch.sqrt(torch.clamp(torch.linalg.det(gram), min=0.0))
        area = facet_measures.sum() / math.factorial(self.dim - 1)
        return area, volume

    @property
    def equations(self) -> torch.Tensor:
        """(M, dim+1) plane equations: unit normal followed by offset."""
        return torch.cat([self.normals, self.offsets.unsqueeze(1)], dim=1)

    @property
    def area(self) -> torch.Tensor:
        return self._area

    @property
    def volume(self) -> torch.Tensor:
        return self._volume
