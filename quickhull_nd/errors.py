"""
Exception classes raised by the hull engine and the Delaunay reduction.

Two families are kept apart:
- `HullError` and its subclasses describe input the engine cannot build a hull
  from (too few points, points that do not span every axis, runaway facet
  growth). Callers may catch these and retry with other points or settings.
- `OrientationFailure` signals a broken internal invariant. It does not derive
  from `HullError`.
"""


class HullError(Exception):
    """Base class for recoverable hull-construction failures."""


class DegenerateInputError(HullError, ValueError):
    """
    Raised when the input cannot determine a full-dimensional hull.

    Typical causes are fewer than d+1 points, a numerically zero span along one
    of the axes, or a hyperplane requested through affinely dependent points.
    """


class ResourceLimitError(HullError, RuntimeError):
    """Raised when the number of live facets exceeds the configured ceiling."""


class OrientationFailure(RuntimeError):
    """Raised when a newly created facet cannot be consistently oriented."""
