"""
Reading and writing triangle meshes.

- `export_obj`: Wavefront OBJ with per-facet normals.
- `export_m`: a MATLAB/Octave script defining `vertices` and `faces` arrays,
  handy for checking a hull with `trisurf(faces, vertices(:,1), ...)`.
- `extract_vertices_from_obj`: reads back the vertex records of an OBJ file.

Filenames are given without extension; the extension is appended when
missing. Face indices are 0-based in memory and 1-based on disk.
"""
import logging
import os

import torch

logger = logging.getLogger(__name__)

NORMAL_EPSILON = 2.23e-9 # Keeps zero-area facets from dividing by zero.
MAX_OBJ_FIELDS = 5 # Most numeric fields accepted on one `v` line.


def _with_extension(filename, extension: str) -> str:
    path = os.fspath(filename)
    return path if path.endswith(extension) else path + extension


def _check_mesh(vertices: torch.Tensor, faces: torch.Tensor):
    if vertices.ndim != 2 or vertices.shape[1] != 3:
        raise ValueError("Mesh vertices must have shape (n, 3).")
    if faces.ndim != 2 or faces.shape[1] != 3:
        raise ValueError("Mesh faces must be triangles, shape (m, 3).")


def facet_normals(vertices: torch.Tensor, faces: torch.Tensor) -> torch.Tensor:
    """
    Unit normals (v1 - v0) x (v2 - v0) of triangular faces.

    Args:
        vertices (torch.Tensor): Tensor of shape (n, 3).
        faces (torch.Tensor): Long tensor of shape (m, 3).

    Returns:
        torch.Tensor: float64 tensor of shape (m, 3). Degenerate faces get a
                      (near) zero vector instead of NaNs.
    """
    tri = vertices.to(torch.float64)[faces.long()] # (m, 3, 3)
    normals = torch.linalg.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0], dim=1)
    scale = 1.0 / (torch.linalg.norm(normals, dim=1, keepdim=True) + NORMAL_EPSILON)
    return normals * scale


def export_obj(vertices: torch.Tensor, faces: torch.Tensor, obj_filename,
               keep_only_used_vertices: bool = False) -> str:
    """
    Writes a triangle mesh as a Wavefront OBJ file.

    Args:
        vertices (torch.Tensor): Tensor of shape (n, 3).
        faces (torch.Tensor): Long tensor of shape (m, 3), 0-based indices.
        obj_filename (str | os.PathLike): Output path; `.obj` is appended if missing.
        keep_only_used_vertices (bool, optional): Write three vertices per face,
            in face order, instead of the whole vertex array. Defaults to False.

    Returns:
        str: The path written.

    Raises:
        ValueError: If the arrays do not describe a triangle mesh.
    """
    _check_mesh(vertices, faces)
    path = _with_extension(obj_filename, ".obj")
    coords = vertices.detach().cpu().to(torch.float64)
    faces = faces.detach().cpu().long()
    normals = facet_normals(coords, faces)

    if keep_only_used_vertices:
        written = coords[faces.flatten()]
        face_rows = torch.arange(faces.numel()).reshape(-1, 3)
    else:
        written = coords
        face_rows = faces

    with open(path, "w") as obj_file:
        obj_file.write("o\n")
        for x, y, z in written.tolist():
            obj_file.write("v %f %f %f\n" % (x, y, z))
        for nx, ny, nz in normals.tolist():
            obj_file.write("vn %f %f %f\n" % (nx, ny, nz))
        for k, (a, b, c) in enumerate(face_rows.tolist(), start=1):
            obj_file.write("f %d//%d %d//%d %d//%d\n" % (a + 1, k, b + 1, k, c + 1, k))

    logger.debug("Wrote %d vertices and %d faces to %s", written.shape[0], faces.shape[0], path)
    return path


def export_m(vertices: torch.Tensor, faces: torch.Tensor, m_filename) -> str:
    """
    Writes a triangle mesh as a MATLAB script.

    Args:
        vertices (torch.Tensor): Tensor of shape (n, 3).
        faces (torch.Tensor): Long tensor of shape (m, 3), 0-based indices.
        m_filename (str | os.PathLike): Output path; `.m` is appended if missing.

    Returns:
        str: The path written.
    """
    _check_mesh(vertices, faces)
    path = _with_extension(m_filename, ".m")
    with open(path, "w") as m_file:
        m_file.write("vertices = [\n")
        for x, y, z in vertices.detach().cpu().to(torch.float64).tolist():
            m_file.write("%f, %f, %f;\n" % (x, y, z))
        m_file.write("];\n\n\n")
        m_file.write("faces = [\n")
        for a, b, c in faces.detach().cpu().long().tolist():
            m_file.write(" %d, %d, %d;\n" % (a + 1, b + 1, c + 1))
        m_file.write("];\n\n\n")

    logger.debug("Wrote %d vertices and %d faces to %s", vertices.shape[0], faces.shape[0], path)
    return path


def extract_vertices_from_obj(obj_filename) -> torch.Tensor:
    """
    Reads the vertex records (`v` lines) of an OBJ file.

    Args:
        obj_filename (str | os.PathLike): Input path; `.obj` is appended if missing.

    Returns:
        torch.Tensor: float64 tensor of shape (n, k), k being the number of
                      fields per `v` line (3 to 5). (0, 3) for a file without vertices.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a `v` line has more than 5 fields, a non-numeric field,
                    or a different number of fields than the first one.
    """
    path = _with_extension(obj_filename, ".obj")
    rows = []
    with open(path, "r") as obj_file:
        for line_number, line in enumerate(obj_file, start=1):
            if not line.startswith("v "):
                continue
            fields = line.split()[1:]
            if len(fields) > MAX_OBJ_FIELDS:
                raise ValueError(f"{path}:{line_number}: vertex has {len(fields)} fields, at most {MAX_OBJ_FIELDS} allowed.")
            try:
                row = [float(field) for field in fields]
            except ValueError as exc:
                raise ValueError(f"{path}:{line_number}: invalid vertex record {line.strip()!r}.") from exc
            if rows and len(row) != len(rows[0]):
                raise ValueError(f"{path}:{line_number}: expected {len(rows[0])} fields, got {len(row)}.")
            rows.append(row)

    if not rows:
        return torch.zeros((0, 3), dtype=torch.float64)
    return torch.tensor(rows, dtype=torch.float64)
