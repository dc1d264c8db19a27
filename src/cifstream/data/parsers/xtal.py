"""Crystallographic metadata: unit cell, space group, NCS operators.

The cell's fractionalisation (scale) matrix follows the PDB convention:
the a axis lies along x and the b axis in the xy plane.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from cifstream.constants.spacegroups import CRYSTAL_SYSTEMS, SPACE_GROUP_ALIASES, SPACE_GROUPS


# Tolerance when comparing a parsed scale matrix to the cell-derived one
SCALE_MATRIX_TOLERANCE = 1e-4


@dataclass
class CrystalCell:
    """Unit cell edges (Å) and angles (degrees)."""
    a: float
    b: float
    c: float
    alpha: float
    beta: float
    gamma: float

    # Smaller edges are placeholders (e.g. 1 1 1 90 90 90 for NMR/EM entries)
    MIN_VALID_CELL_SIZE = 10.0

    def is_cell_reasonable(self) -> bool:
        return min(self.a, self.b, self.c) >= self.MIN_VALID_CELL_SIZE

    @property
    def volume(self) -> float:
        alpha, beta, gamma = (math.radians(v) for v in (self.alpha, self.beta, self.gamma))
        cos_a, cos_b, cos_g = math.cos(alpha), math.cos(beta), math.cos(gamma)
        return self.a * self.b * self.c * math.sqrt(
            1 - cos_a ** 2 - cos_b ** 2 - cos_g ** 2 + 2 * cos_a * cos_b * cos_g
        )

    def orthogonalization_matrix(self) -> np.ndarray:
        """3x3 matrix converting fractional to Cartesian coordinates."""
        alpha, beta, gamma = (math.radians(v) for v in (self.alpha, self.beta, self.gamma))
        cos_a, cos_b, cos_g = math.cos(alpha), math.cos(beta), math.cos(gamma)
        sin_g = math.sin(gamma)
        v = self.volume
        return np.array([
            [self.a, self.b * cos_g, self.c * cos_b],
            [0.0, self.b * sin_g, self.c * (cos_a - cos_b * cos_g) / sin_g],
            [0.0, 0.0, v / (self.a * self.b * sin_g)],
        ], dtype=np.float64)

    def scale_matrix(self) -> np.ndarray:
        """4x4 matrix converting Cartesian to fractional coordinates."""
        m = np.eye(4, dtype=np.float64)
        m[:3, :3] = np.linalg.inv(self.orthogonalization_matrix())
        return m

    def check_scale_matrix(self, parsed: np.ndarray) -> bool:
        """True when a parsed 4x4 scale matrix agrees with this cell."""
        parsed = np.asarray(parsed, dtype=np.float64)
        if parsed.shape != (4, 4):
            return False
        if not np.allclose(parsed[:3, 3], 0.0, atol=SCALE_MATRIX_TOLERANCE):
            return False
        return bool(np.allclose(parsed[:3, :3], self.scale_matrix()[:3, :3], atol=SCALE_MATRIX_TOLERANCE))


@dataclass(frozen=True)
class SpaceGroup:
    """A space group by International Tables number and H-M symbol."""
    number: int
    short_symbol: str

    @property
    def crystal_system(self) -> str:
        for upper, name in CRYSTAL_SYSTEMS:
            if self.number <= upper:
                return name
        raise ValueError(f"Invalid space group number {self.number}")

    def __str__(self) -> str:
        return self.short_symbol


def _normalize_symbol(symbol: str) -> str:
    return re.sub(r"\s+", " ", symbol.strip()).upper()


class SpaceGroupTable:
    """Lookup of space groups by Hermann-Mauguin symbol.

    Matching ignores case and repeated whitespace. Known legacy spellings
    resolve to their full symbol.
    """

    def __init__(self):
        self._by_symbol: Dict[str, SpaceGroup] = {}
        for number, symbol in SPACE_GROUPS:
            self._by_symbol[_normalize_symbol(symbol)] = SpaceGroup(number, symbol)
        for alias, symbol in SPACE_GROUP_ALIASES.items():
            self._by_symbol[_normalize_symbol(alias)] = self._by_symbol[_normalize_symbol(symbol)]

    def get(self, symbol: Optional[str]) -> Optional[SpaceGroup]:
        if symbol is None:
            return None
        return self._by_symbol.get(_normalize_symbol(symbol))

    def __contains__(self, symbol: str) -> bool:
        return self.get(symbol) is not None

    def __len__(self) -> int:
        return len(SPACE_GROUPS)


@dataclass
class PDBCrystallographicInfo:
    """Crystal cell, space group and non-crystallographic symmetry.

    Attributes:
        crystal_cell: Unit cell, only when reasonable
        space_group: Space group, when the symbol was recognised
        non_standard_sg: Set when the space group symbol was not recognised
        non_standard_coord_frame_convention: Set when the deposited scale
            matrix disagrees with the cell in the PDB convention
        ncs_operators: 4x4 NCS matrices to generate the full asymmetric unit
    """
    crystal_cell: Optional[CrystalCell] = None
    space_group: Optional[SpaceGroup] = None
    non_standard_sg: bool = False
    non_standard_coord_frame_convention: bool = False
    ncs_operators: List[np.ndarray] = field(default_factory=list)

    @property
    def is_crystallographic(self) -> bool:
        return self.crystal_cell is not None and self.space_group is not None
