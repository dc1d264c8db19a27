"""
Atom names of the standard monomers.

Heavy atoms only, in the order used by the wwPDB chemical component
dictionary. These back the built-in monomer dictionary.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Amino Acids
# =============================================================================

PROTEIN_BACKBONE_ATOMS: Final[tuple[str, ...]] = ("N", "CA", "C", "O")

# Terminal carboxylate oxygen present on the last residue of a chain
TERMINAL_OXYGEN: Final[str] = "OXT"

AMINO_ACID_SIDECHAIN_ATOMS: Final[dict[str, tuple[str, ...]]] = {
    "ALA": ("CB",),
    "ARG": ("CB", "CG", "CD", "NE", "CZ", "NH1", "NH2"),
    "ASN": ("CB", "CG", "OD1", "ND2"),
    "ASP": ("CB", "CG", "OD1", "OD2"),
    "CYS": ("CB", "SG"),
    "GLN": ("CB", "CG", "CD", "OE1", "NE2"),
    "GLU": ("CB", "CG", "CD", "OE1", "OE2"),
    "GLY": (),
    "HIS": ("CB", "CG", "ND1", "CD2", "CE1", "NE2"),
    "ILE": ("CB", "CG1", "CG2", "CD1"),
    "LEU": ("CB", "CG", "CD1", "CD2"),
    "LYS": ("CB", "CG", "CD", "CE", "NZ"),
    "MET": ("CB", "CG", "SD", "CE"),
    "MSE": ("CB", "CG", "SE", "CE"),
    "PHE": ("CB", "CG", "CD1", "CD2", "CE1", "CE2", "CZ"),
    "PRO": ("CB", "CG", "CD"),
    "SER": ("CB", "OG"),
    "THR": ("CB", "OG1", "CG2"),
    "TRP": ("CB", "CG", "CD1", "CD2", "NE1", "CE2", "CE3", "CZ2", "CZ3", "CH2"),
    "TYR": ("CB", "CG", "CD1", "CD2", "CE1", "CE2", "CZ", "OH"),
    "VAL": ("CB", "CG1", "CG2"),
    "UNK": (),
}

RESIDUE_ATOMS: Final[dict[str, tuple[str, ...]]] = {
    name: PROTEIN_BACKBONE_ATOMS + sidechain + (TERMINAL_OXYGEN,)
    for name, sidechain in AMINO_ACID_SIDECHAIN_ATOMS.items()
}

# =============================================================================
# Nucleotides
# =============================================================================

RNA_BACKBONE_ATOMS: Final[tuple[str, ...]] = (
    "OP3", "P", "OP1", "OP2", "O5'", "C5'", "C4'", "O4'",
    "C3'", "O3'", "C2'", "O2'", "C1'",
)

# Deoxyribose lacks O2'
DNA_BACKBONE_ATOMS: Final[tuple[str, ...]] = tuple(
    name for name in RNA_BACKBONE_ATOMS if name != "O2'"
)

BASE_ATOMS: Final[dict[str, tuple[str, ...]]] = {
    "A": ("N9", "C8", "N7", "C5", "C6", "N6", "N1", "C2", "N3", "C4"),
    "G": ("N9", "C8", "N7", "C5", "C6", "O6", "N1", "C2", "N2", "N3", "C4"),
    "C": ("N1", "C2", "O2", "N3", "C4", "N4", "C5", "C6"),
    "U": ("N1", "C2", "O2", "N3", "C4", "O4", "C5", "C6"),
    "T": ("N1", "C2", "O2", "N3", "C4", "O4", "C5", "C7", "C6"),
}

RNA_ATOMS: Final[dict[str, tuple[str, ...]]] = {
    base: RNA_BACKBONE_ATOMS + BASE_ATOMS[base] for base in ("A", "C", "G", "U")
}

DNA_ATOMS: Final[dict[str, tuple[str, ...]]] = {
    "D" + base: DNA_BACKBONE_ATOMS + BASE_ATOMS[base] for base in ("A", "C", "G", "T")
}

# =============================================================================
# Water
# =============================================================================

WATER_ATOMS: Final[tuple[str, ...]] = ("O",)
