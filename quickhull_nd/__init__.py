# quickhull_nd package
# Convex hulls in 2 to 5 dimensions and Delaunay triangulations in 1 to 4
# dimensions, built on PyTorch tensors.

from .errors import HullError, DegenerateInputError, ResourceLimitError, OrientationFailure
from .convex_hull import HullConfig, HullResult, QuickHullBuilder, ConvexHull, quickhull_3d, quickhull_nd
from .delaunay_nd import delaunay_triangulation_nd
from .circumsphere_calculations import compute_simplex_circumsphere, is_point_in_circumsphere
from .validation import hull_diagnostics, delaunay_diagnostics
from .mesh_io import export_obj, export_m, extract_vertices_from_obj

# Plotting needs matplotlib; import it from `quickhull_nd.hull_plotting` directly.
