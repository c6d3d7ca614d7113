"""
Core geometric primitives for the quickhull engine.

This module provides the numerical building blocks shared by the 3-D and N-D
hull builders and by the Delaunay reduction:
- Global constants (tolerances, the dimension ceiling, the facet ceiling).
- Determinants with closed forms up to 4x4 and a recursive cofactor expansion
  beyond that (`determinant`, `det_nxn`).
- The homogeneous orientation test (`signed_volume`).
- Hyperplane coefficients through d points in d dimensions
  (`hyperplane_through`, `plane_coefficients`).

Scalar arithmetic is carried out on Python floats (double precision). Tensors
are accepted anywhere a matrix is expected and are converted with `.tolist()`,
so exact-zero checks on determinants mean what they say.
"""
import math

import torch

from .errors import DegenerateInputError

EPSILON = 1e-7 # Default tolerance for predicates and diagnostics.
MAX_DIMENSIONS = 5 # Highest dimension the hull engine accepts.
NOISE_VALUE = 1e-7 # Upper bound of the per-coordinate perturbation.
SPAN_TOLERANCE = 1e-7 # Minimum per-axis span of a valid point set.
MAX_NUM_FACETS = 50000 # Live facet ceiling; exceeding it aborts the build.


def _as_rows(matrix) -> list[list[float]]:
    """Converts a tensor or nested sequence into a list of float rows."""
    if isinstance(matrix, torch.Tensor):
        return matrix.detach().to(dtype=torch.float64).tolist()
    return [[float(value) for value in row] for row in matrix]


def det_2x2(m: list[list[float]]) -> float:
    return m[0][0] * m[1][1] - m[0][1] * m[1][0]


def det_3x3(m: list[list[float]]) -> float:
    return (m[0][0] * (m[1][1] * m[2][2] - m[1][2] * m[2][1])
            - m[0][1] * (m[1][0] * m[2][2] - m[1][2] * m[2][0])
            + m[0][2] * (m[1][0] * m[2][1] - m[1][1] * m[2][0]))


def det_4x4(m: list[list[float]]) -> float:
    """
    Closed-form 4x4 determinant.

    Laplace expansion along the first two rows: every 2x2 minor of rows 0-1 is
    paired with the complementary 2x2 minor of rows 2-3.
    """
    s0 = m[0][0] * m[1][1] - m[1][0] * m[0][1]
    s1 = m[0][0] * m[1][2] - m[1][0] * m[0][2]
    s2 = m[0][0] * m[1][3] - m[1][0] * m[0][3]
    s3 = m[0][1] * m[1][2] - m[1][1] * m[0][2]
    s4 = m[0][1] * m[1][3] - m[1][1] * m[0][3]
    s5 = m[0][2] * m[1][3] - m[1][2] * m[0][3]

    c5 = m[2][2] * m[3][3] - m[3][2] * m[2][3]
    c4 = m[2][1] * m[3][3] - m[3][1] * m[2][3]
    c3 = m[2][1] * m[3][2] - m[3][1] * m[2][2]
    c2 = m[2][0] * m[3][3] - m[3][0] * m[2][3]
    c1 = m[2][0] * m[3][2] - m[3][0] * m[2][2]
    c0 = m[2][0] * m[3][1] - m[3][0] * m[2][1]

    return s0 * c5 - s1 * c4 + s2 * c3 + s3 * c2 - s4 * c1 + s5 * c0


def det_nxn(m: list[list[float]]) -> float:
    """
    Determinant by cofactor expansion along the first row.

    Sub-matrices are built per call, so there is no hard-coded size limit; the
    cost is exponential in the size, which is acceptable only because the hull
    engine caps the dimension at `MAX_DIMENSIONS`. Minors of size 4 and below
    are handed back to the closed forms through `determinant`.

    Args:
        m (list[list[float]]): Square matrix as a list of rows.

    Returns:
        float: The determinant. The determinant of the empty matrix is 1.
    """
    size = len(m)
    if size == 0:
        return 1.0
    total = 0.0
    sign = 1.0
    for col in range(size):
        if m[0][col] != 0.0:
            sub_matrix = [row[:col] + row[col + 1:] for row in m[1:]]
            total += sign * m[0][col] * determinant(sub_matrix)
        sign = -sign
    return total


def determinant(matrix) -> float:
    """
    Determinant of a square matrix, dispatching on its size.

    Sizes 1 to 4 use closed forms; larger matrices use `det_nxn`.

    Args:
        matrix (torch.Tensor | Sequence[Sequence[float]]): Square matrix.

    Returns:
        float: The determinant.

    Raises:
        ValueError: If the matrix is not square.
    """
    m = _as_rows(matrix)
    size = len(m)
    if any(len(row) != size for row in m):
        raise ValueError("Determinant requires a square matrix.")
    if size == 0:
        return 1.0
    if size == 1:
        return m[0][0]
    if size == 2:
        return det_2x2(m)
    if size == 3:
        return det_3x3(m)
    if size == 4:
        return det_4x4(m)
    return det_nxn(m)


def signed_volume(points) -> float:
    """
    Homogeneous orientation determinant of d+1 points in d dimensions.

    Each point becomes a row of its coordinates followed by a 1, and the
    determinant of the resulting (d+1)x(d+1) matrix is returned. Rows that
    already have d+1 entries are taken as homogeneous and used as they are.

    For a facet (p1, ..., pd) whose plane comes from `hyperplane_through`, the
    result for [p1, ..., pd, q] is positive exactly when q lies on the negative
    (inner) side of the plane, and zero when q is on the plane.

    Args:
        points (torch.Tensor | Sequence[Sequence[float]]): d+1 points, shape
            (d+1, d) or homogeneous (d+1, d+1).

    Returns:
        float: The signed determinant (d! times the signed simplex volume, up to sign).

    Raises:
        ValueError: If the row length fits neither layout.
    """
    rows = _as_rows(points)
    count = len(rows)
    width = len(rows[0]) if rows else 0
    if width == count - 1:
        rows = [row + [1.0] for row in rows]
    elif width != count:
        raise ValueError(f"signed_volume expects d+1 points of dimension d, got {count} points of dimension {width}.")
    return determinant(rows)


def plane_coefficients(points) -> tuple[list[float], float]:
    """
    Unit normal and offset of the hyperplane through d points in d dimensions.

    The normal is the generalized cross product of the consecutive differences
    p[j+1] - p[j]: component i is the determinant of the difference matrix with
    column i removed, with signs alternating from +. In 3-D this is the ordinary
    cross product and is computed directly.

    Args:
        points (torch.Tensor | Sequence[Sequence[float]]): d points, shape (d, d).
            Extra trailing columns (e.g. the homogeneous 1) are ignored.

    Returns:
        tuple[list[float], float]: (normal, offset) with |normal| = 1 and
        dot(normal, p) + offset = 0 for every input point.

    Raises:
        DegenerateInputError: If the points are affinely dependent (zero normal).
    """
    rows = _as_rows(points)
    dim = len(rows)
    rows = [row[:dim] for row in rows]
    diffs = [[rows[j + 1][k] - rows[j][k] for k in range(dim)] for j in range(dim - 1)]

    if dim == 3:
        a, b = diffs
        normal = [a[1] * b[2] - a[2] * b[1],
                  a[2] * b[0] - a[0] * b[2],
                  a[0] * b[1] - a[1] * b[0]]
    else:
        normal = []
        sign = 1.0
        for i in range(dim):
            minor = [row[:i] + row[i + 1:] for row in diffs]
            normal.append(sign * determinant(minor))
            sign = -sign

    norm = math.sqrt(sum(c * c for c in normal))
    if norm == 0.0:
        raise DegenerateInputError("Cannot fit a hyperplane through affinely dependent points.")
    normal = [c / norm for c in normal]
    offset = -sum(p * c for p, c in zip(rows[0], normal))
    return normal, offset


def hyperplane_through(points) -> tuple[torch.Tensor, torch.Tensor]:
    """
    Tensor-returning wrapper around `plane_coefficients`.

    Args:
        points (torch.Tensor | Sequence[Sequence[float]]): d points, shape (d, d).

    Returns:
        Tuple[torch.Tensor, torch.Tensor]:
            - normal (torch.Tensor): Unit normal, shape (d,), float64.
            - offset (torch.Tensor): Scalar offset, float64.
    """
    normal, offset = plane_coefficients(points)
    return torch.tensor(normal, dtype=torch.float64), torch.tensor(offset, dtype=torch.float64)
