"""
Space group vocabulary.

Hermann-Mauguin symbols of the space groups that occur for macromolecular
crystals (the 65 Sohncke groups plus P -1), keyed by their International
Tables number, together with the alternative spellings seen in PDB entries.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Space Groups
# =============================================================================

# (number, full H-M symbol as written in _symmetry.space_group_name_H-M)
SPACE_GROUPS: Final[tuple[tuple[int, str], ...]] = (
    # Triclinic
    (1, "P 1"), (2, "P -1"),
    # Monoclinic
    (3, "P 1 2 1"), (4, "P 1 21 1"), (5, "C 1 2 1"),
    # Orthorhombic
    (16, "P 2 2 2"), (17, "P 2 2 21"), (18, "P 21 21 2"), (19, "P 21 21 21"),
    (20, "C 2 2 21"), (21, "C 2 2 2"), (22, "F 2 2 2"), (23, "I 2 2 2"),
    (24, "I 21 21 21"),
    # Tetragonal
    (75, "P 4"), (76, "P 41"), (77, "P 42"), (78, "P 43"), (79, "I 4"),
    (80, "I 41"), (89, "P 4 2 2"), (90, "P 4 21 2"), (91, "P 41 2 2"),
    (92, "P 41 21 2"), (93, "P 42 2 2"), (94, "P 42 21 2"), (95, "P 43 2 2"),
    (96, "P 43 21 2"), (97, "I 4 2 2"), (98, "I 41 2 2"),
    # Trigonal
    (143, "P 3"), (144, "P 31"), (145, "P 32"), (146, "R 3"),
    (149, "P 3 1 2"), (150, "P 3 2 1"), (151, "P 31 1 2"), (152, "P 31 2 1"),
    (153, "P 32 1 2"), (154, "P 32 2 1"), (155, "R 3 2"),
    # Hexagonal
    (168, "P 6"), (169, "P 61"), (170, "P 65"), (171, "P 62"), (172, "P 64"),
    (173, "P 63"), (177, "P 6 2 2"), (178, "P 61 2 2"), (179, "P 65 2 2"),
    (180, "P 62 2 2"), (181, "P 64 2 2"), (182, "P 63 2 2"),
    # Cubic
    (195, "P 2 3"), (196, "F 2 3"), (197, "I 2 3"), (198, "P 21 3"),
    (199, "I 21 3"), (207, "P 4 3 2"), (208, "P 42 3 2"), (209, "F 4 3 2"),
    (210, "F 41 3 2"), (211, "I 4 3 2"), (212, "P 43 3 2"), (213, "P 41 3 2"),
    (214, "I 41 3 2"),
)

# Short or legacy spellings mapped to the full symbol above
SPACE_GROUP_ALIASES: Final[dict[str, str]] = {
    "P 2": "P 1 2 1",
    "P 21": "P 1 21 1",
    "C 2": "C 1 2 1",
    "A 1 2 1": "C 1 2 1",
    "I 1 2 1": "C 1 2 1",
    "B 2": "C 1 2 1",
    "H 3": "R 3",
    "H 3 2": "R 3 2",
    "R 3 :H": "R 3",
    "R 3 2 :H": "R 3 2",
    "P 1-": "P -1",
}

# Crystal system by space group number range (inclusive upper bounds)
CRYSTAL_SYSTEMS: Final[tuple[tuple[int, str], ...]] = (
    (2, "TRICLINIC"),
    (15, "MONOCLINIC"),
    (74, "ORTHORHOMBIC"),
    (142, "TETRAGONAL"),
    (167, "TRIGONAL"),
    (194, "HEXAGONAL"),
    (230, "CUBIC"),
)
