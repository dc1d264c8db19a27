"""
Covalent bond definitions for the standard monomers.

Intra-residue bonds are written as ``"A1-A2"`` pairs, separated by spaces,
and expanded into tuples at import time.
"""

from __future__ import annotations

from typing import Final


def _pairs(text: str) -> tuple[tuple[str, str], ...]:
    pairs = []
    for token in text.split():
        first, second = token.split("-")
        pairs.append((first, second))
    return tuple(pairs)


# =============================================================================
# Inter-residue Bonds
# =============================================================================

# Peptide bond connecting residues (C of i to N of i+1)
PEPTIDE_BOND_ATOMS: Final[tuple[str, str]] = ("C", "N")

# Phosphodiester bond connecting nucleotides (O3' of i to P of i+1)
PHOSPHODIESTER_BOND_ATOMS: Final[tuple[str, str]] = ("O3'", "P")

# Upper distance limits (Å) used when deciding whether a polymer link exists
MAX_PEPTIDE_BOND_LENGTH: Final[float] = 1.8
MAX_NUCLEOTIDE_BOND_LENGTH: Final[float] = 2.1

# =============================================================================
# Amino Acid Bonds
# =============================================================================

PROTEIN_BACKBONE_BONDS: Final[tuple[tuple[str, str], ...]] = _pairs("N-CA CA-C C-O C-OXT")

_SIDECHAIN_BONDS: Final[dict[str, str]] = {
    "ALA": "CA-CB",
    "ARG": "CA-CB CB-CG CG-CD CD-NE NE-CZ CZ-NH1 CZ-NH2",
    "ASN": "CA-CB CB-CG CG-OD1 CG-ND2",
    "ASP": "CA-CB CB-CG CG-OD1 CG-OD2",
    "CYS": "CA-CB CB-SG",
    "GLN": "CA-CB CB-CG CG-CD CD-OE1 CD-NE2",
    "GLU": "CA-CB CB-CG CG-CD CD-OE1 CD-OE2",
    "GLY": "",
    "HIS": "CA-CB CB-CG CG-ND1 CG-CD2 ND1-CE1 CD2-NE2 CE1-NE2",
    "ILE": "CA-CB CB-CG1 CB-CG2 CG1-CD1",
    "LEU": "CA-CB CB-CG CG-CD1 CG-CD2",
    "LYS": "CA-CB CB-CG CG-CD CD-CE CE-NZ",
    "MET": "CA-CB CB-CG CG-SD SD-CE",
    "MSE": "CA-CB CB-CG CG-SE SE-CE",
    "PHE": "CA-CB CB-CG CG-CD1 CG-CD2 CD1-CE1 CD2-CE2 CE1-CZ CE2-CZ",
    "PRO": "CA-CB CB-CG CG-CD CD-N",
    "SER": "CA-CB CB-OG",
    "THR": "CA-CB CB-OG1 CB-CG2",
    "TRP": "CA-CB CB-CG CG-CD1 CG-CD2 CD1-NE1 NE1-CE2 CD2-CE2 CD2-CE3 "
           "CE2-CZ2 CE3-CZ3 CZ2-CH2 CZ3-CH2",
    "TYR": "CA-CB CB-CG CG-CD1 CG-CD2 CD1-CE1 CD2-CE2 CE1-CZ CE2-CZ CZ-OH",
    "VAL": "CA-CB CB-CG1 CB-CG2",
    "UNK": "",
}

PROTEIN_RESIDUE_BONDS: Final[dict[str, tuple[tuple[str, str], ...]]] = {
    name: PROTEIN_BACKBONE_BONDS + _pairs(sidechain)
    for name, sidechain in _SIDECHAIN_BONDS.items()
}

# =============================================================================
# Nucleotide Bonds
# =============================================================================

RNA_BACKBONE_BONDS: Final[tuple[tuple[str, str], ...]] = _pairs(
    "OP3-P P-OP1 P-OP2 P-O5' O5'-C5' C5'-C4' C4'-O4' C4'-C3' C3'-O3' "
    "C3'-C2' C2'-O2' C2'-C1' C1'-O4'"
)

DNA_BACKBONE_BONDS: Final[tuple[tuple[str, str], ...]] = tuple(
    bond for bond in RNA_BACKBONE_BONDS if "O2'" not in bond
)

_PURINE_RING: Final[str] = "N9-C8 C8-N7 N7-C5 C5-C6 C6-N1 N1-C2 C2-N3 N3-C4 C4-C5 C4-N9"
_PYRIMIDINE_RING: Final[str] = "N1-C2 C2-N3 N3-C4 C4-C5 C5-C6 C6-N1 C2-O2"

BASE_BONDS: Final[dict[str, tuple[tuple[str, str], ...]]] = {
    "A": _pairs("C1'-N9 " + _PURINE_RING + " C6-N6"),
    "G": _pairs("C1'-N9 " + _PURINE_RING + " C6-O6 C2-N2"),
    "C": _pairs("C1'-N1 " + _PYRIMIDINE_RING + " C4-N4"),
    "U": _pairs("C1'-N1 " + _PYRIMIDINE_RING + " C4-O4"),
    "T": _pairs("C1'-N1 " + _PYRIMIDINE_RING + " C4-O4 C5-C7"),
}

NUCLEOTIDE_RESIDUE_BONDS: Final[dict[str, tuple[tuple[str, str], ...]]] = {
    **{base: RNA_BACKBONE_BONDS + BASE_BONDS[base] for base in ("A", "C", "G", "U")},
    **{"D" + base: DNA_BACKBONE_BONDS + BASE_BONDS[base] for base in ("A", "C", "G", "T")},
}
