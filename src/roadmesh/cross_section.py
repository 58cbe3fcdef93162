"""Rectangular cross sections perpendicular to a road line.

A cross section is the rectangle the road slab shows when cut at one
centre-line point.  Consecutive sections are connected into the road
tube by the triangulator.

Two profiles are supported.  The basic profile carries the four
corners used by the render mesh.  The extended profile additionally
records the mid-height side points and a deeper pair of bottom corners
(the hitbox) from which a separate collision hull is built.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class CrossSectionProfile(Enum):
    """Which points a cross section carries."""

    BASIC = "basic"
    EXTENDED = "extended"


class DegenerateDirectionError(ValueError):
    """Raised when a section direction cannot define a perpendicular."""


@dataclass
class CrossSection:
    """Corner points of one road cross section.

    "Left" is the side reached by ``cross(direction, up)``.
    """
    center: np.ndarray
    top_left: np.ndarray
    top_right: np.ndarray
    bottom_left: np.ndarray
    bottom_right: np.ndarray
    center_left: Optional[np.ndarray] = None
    center_right: Optional[np.ndarray] = None
    hitbox_left: Optional[np.ndarray] = None
    hitbox_right: Optional[np.ndarray] = None

    @property
    def profile(self) -> CrossSectionProfile:
        if self.center_left is None:
            return CrossSectionProfile.BASIC
        return CrossSectionProfile.EXTENDED

    def render_corners(self) -> np.ndarray:
        """Corners in vertex-buffer order: TL, TR, BL, BR."""
        return np.vstack([self.top_left, self.top_right, self.bottom_left, self.bottom_right])

    def collision_corners(self) -> np.ndarray:
        """Corners of the collision hull in vertex-buffer order.

        The basic profile has no separate hull and returns the render
        corners.
        """
        if self.hitbox_left is None:
            return self.render_corners()
        return np.vstack([self.top_left, self.top_right, self.hitbox_left, self.hitbox_right])

    def left_edge_point(self) -> np.ndarray:
        """Mid-height point of the left side."""
        return (self.top_left + self.bottom_left) / 2.0

    def right_edge_point(self) -> np.ndarray:
        """Mid-height point of the right side."""
        return (self.top_right + self.bottom_right) / 2.0


_LEFT_FIELDS = ("top_left", "bottom_left", "center_left", "hitbox_left")
_RIGHT_FIELDS = ("top_right", "bottom_right", "center_right", "hitbox_right")


def _swap_fields(a: CrossSection, b: CrossSection, names) -> None:
    if a.profile != b.profile:
        raise ValueError("cannot swap sides between sections of different profiles")
    for name in names:
        va = getattr(a, name)
        setattr(a, name, getattr(b, name))
        setattr(b, name, va)


def swap_left_sides(a: CrossSection, b: CrossSection) -> None:
    """Exchange the left-side points of two sections in place.

    Top, bottom, centre and hitbox points of the side move together.
    """
    _swap_fields(a, b, _LEFT_FIELDS)


def swap_right_sides(a: CrossSection, b: CrossSection) -> None:
    """Exchange the right-side points of two sections in place."""
    _swap_fields(a, b, _RIGHT_FIELDS)


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


def build_cross_section(
    center,
    direction,
    up,
    width: float,
    thickness: float,
    profile: CrossSectionProfile = CrossSectionProfile.BASIC,
    hitbox_depth: float = 0.0,
) -> CrossSection:
    """Build the cross section at ``center`` facing ``direction``.

    Parameters
    ----------
    center : array_like
        Centre-line point, shape (3,).
    direction : array_like
        Direction of travel at the point; need not be normalised.
    up : array_like
        Local up axis of the road object.
    width : float
        Distance between the left and right sides.
    thickness : float
        Distance between the top and bottom faces.
    profile : CrossSectionProfile
        Which points to compute.
    hitbox_depth : float
        How far the hitbox corners extend below the bottom face
        (extended profile only).

    Returns
    -------
    CrossSection
        The section corners.

    Raises
    ------
    DegenerateDirectionError
        If ``direction`` is zero or parallel to ``up``.
    """
    center = np.asarray(center, dtype=float)
    direction = np.asarray(direction, dtype=float)
    up = np.asarray(up, dtype=float)
    if center.shape != (3,) or direction.shape != (3,) or up.shape != (3,):
        raise ValueError("center, direction and up must be 3D vectors")

    side = np.cross(direction, up)
    if np.linalg.norm(side) < 1e-12:
        raise DegenerateDirectionError(
            f"direction {direction.tolist()} is zero or parallel to up {up.tolist()}"
        )
    perpendicular = _normalize(side)
    vertical = _normalize(np.cross(perpendicular, direction))

    half_width = width / 2.0
    half_height = thickness / 2.0

    left = center + perpendicular * half_width
    right = center - perpendicular * half_width
    section = CrossSection(
        center=center.copy(),
        top_left=left + vertical * half_height,
        top_right=right + vertical * half_height,
        bottom_left=left - vertical * half_height,
        bottom_right=right - vertical * half_height,
    )
    if profile is CrossSectionProfile.EXTENDED:
        depth = half_height + hitbox_depth
        section.center_left = left
        section.center_right = right
        section.hitbox_left = left - vertical * depth
        section.hitbox_right = right - vertical * depth
    return section
