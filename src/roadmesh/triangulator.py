"""Index buffer for a tube of rectangular cross sections.

Vertices are laid out four per section in the order top-left,
top-right, bottom-left, bottom-right, so the triangle list depends
only on the number of sections.  Between every pair of neighbouring
sections four quads are emitted (top, bottom, left, right) and the
first and last sections are closed with a cap each.  Every quad is
split into two triangles ``(a, b, c)`` and ``(c, d, a)``, where
``a, b, c, d`` run clockwise as seen from outside the tube.
"""

import numpy as np

# Quads between section i and i + 1, as offsets from 4 * i.
_SEGMENT_QUADS = np.array([
    [0, 4, 5, 1],  # top
    [2, 3, 7, 6],  # bottom
    [0, 2, 6, 4],  # left
    [1, 5, 7, 3],  # right
])


def _split_quads(quads: np.ndarray) -> np.ndarray:
    """Split (Q, 4) quads into (2Q, 3) triangles, two per quad in order."""
    first = quads[:, [0, 1, 2]]
    second = quads[:, [2, 3, 0]]
    return np.stack([first, second], axis=1).reshape(-1, 3)


def triangle_count(section_count: int) -> int:
    """Number of triangles in a tube of ``section_count`` sections."""
    if section_count < 2:
        return 0
    return (section_count - 1) * 8 + 4


def triangulate(section_count: int) -> np.ndarray:
    """Triangle indices for a closed tube of cross sections.

    Parameters
    ----------
    section_count : int
        Number of cross sections.

    Returns
    -------
    numpy.ndarray
        Integer array of shape (T, 3) with
        ``T == triangle_count(section_count)``.  Segment triangles come
        first, in section order, followed by the front cap and the back
        cap.  A single section cannot form a tube and yields no
        triangles.
    """
    if section_count < 0:
        raise ValueError("section_count must be non-negative")
    if section_count < 2:
        return np.zeros((0, 3), dtype=np.int32)

    offsets = np.arange(section_count - 1)[:, None, None] * 4
    quads = (offsets + _SEGMENT_QUADS[None, :, :]).reshape(-1, 4)

    last = section_count * 4
    caps = np.array([
        [0, 1, 3, 2],                           # front
        [last - 4, last - 2, last - 1, last - 3],  # back
    ])
    triangles = _split_quads(np.vstack([quads, caps])).astype(np.int32)

    assert len(triangles) == triangle_count(section_count)
    assert triangles.max() < last, "triangle index out of range"
    return triangles
