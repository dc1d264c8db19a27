"""
Residue vocabulary.

Contains standard amino acid and nucleotide codes, the one-letter code
table used when building groups and SEQRES chains, and the water and
modified-residue name tables.
"""

from __future__ import annotations

from typing import Final, FrozenSet, Optional

# =============================================================================
# Standard Amino Acids
# =============================================================================

# One-letter codes (canonical order)
AMINO_ACIDS_1: Final[str] = "ACDEFGHIKLMNPQRSTVWY"

# Three-letter codes (matching order)
AMINO_ACIDS_3: Final[tuple[str, ...]] = (
    "ALA", "CYS", "ASP", "GLU", "PHE",
    "GLY", "HIS", "ILE", "LYS", "LEU",
    "MET", "ASN", "PRO", "GLN", "ARG",
    "SER", "THR", "VAL", "TRP", "TYR",
)

AA_3_TO_1: Final[dict[str, str]] = dict(zip(AMINO_ACIDS_3, AMINO_ACIDS_1, strict=True))

# One-letter code for anything without a better assignment
UNKNOWN_GROUP_LABEL: Final[str] = "X"

# Non-canonical amino acids with their own one-letter codes
EXTENDED_AA_3_TO_1: Final[dict[str, str]] = {
    "SEC": "U",  # Selenocysteine
    "PYL": "O",  # Pyrrolysine
    "ASX": "B",  # Asp or Asn
    "GLX": "Z",  # Glu or Gln
    "XLE": "J",  # Leu or Ile
    "UNK": UNKNOWN_GROUP_LABEL,
}

# =============================================================================
# Modified Residues (to parent mapping)
# =============================================================================

MODIFIED_RESIDUE_MAP: Final[dict[str, str]] = {
    "MSE": "MET",  # Selenomethionine
    "FME": "MET",  # N-formylmethionine
    "MLY": "LYS",  # N-dimethyl-lysine
    "MLZ": "LYS",  # N-methyl-lysine
    "M3L": "LYS",  # N-trimethyl-lysine
    "ALY": "LYS",  # N-acetyl-lysine
    "KCX": "LYS",  # Lysine NZ-carboxylic acid
    "HYP": "PRO",  # 4-hydroxyproline
    "TPO": "THR",  # Phosphothreonine
    "SEP": "SER",  # Phosphoserine
    "PTR": "TYR",  # Phosphotyrosine
    "CSO": "CYS",  # S-hydroxycysteine
    "OCS": "CYS",  # Cysteinesulfonic acid
    "CME": "CYS",  # S,S-(2-hydroxyethyl)thiocysteine
    "CSD": "CYS",  # S-cysteinesulfinic acid
    "CAS": "CYS",  # S-(dimethylarsenic)cysteine
    "MLE": "LEU",  # N-methylleucine
    "MVA": "VAL",  # N-methylvaline
    "NLE": "LEU",  # Norleucine
    "DAL": "ALA",  # D-alanine
    "PCA": "GLU",  # Pyroglutamic acid
    "HIC": "HIS",  # 4-methyl-histidine
}

# =============================================================================
# Nucleotides
# =============================================================================

RNA_NUCLEOTIDES: Final[tuple[str, ...]] = ("A", "C", "G", "U", "I", "N")
DNA_NUCLEOTIDES: Final[tuple[str, ...]] = ("DA", "DC", "DG", "DT", "DI", "DU", "DN")

# Frequently deposited modified nucleotides
MODIFIED_NUCLEOTIDES: Final[FrozenSet[str]] = frozenset([
    "PSU", "5MC", "5MU", "OMC", "OMG", "1MA", "2MG", "M2G", "7MG", "H2U",
    "4SU", "5BU", "CBR",
])

NUCLEOTIDES: Final[FrozenSet[str]] = frozenset(
    RNA_NUCLEOTIDES + DNA_NUCLEOTIDES
) | MODIFIED_NUCLEOTIDES

# One-letter code carried by nucleotide groups
NUCLEOTIDE_3_TO_1: Final[dict[str, str]] = {
    "A": "A", "C": "C", "G": "G", "U": "U", "I": "I", "N": "N",
    "DA": "A", "DC": "C", "DG": "G", "DT": "T", "DI": "I", "DU": "U", "DN": "N",
    "PSU": "U", "5MU": "U", "H2U": "U", "4SU": "U", "5BU": "U",
    "5MC": "C", "OMC": "C", "CBR": "C",
    "OMG": "G", "2MG": "G", "M2G": "G", "7MG": "G",
    "1MA": "A",
}

# =============================================================================
# Water
# =============================================================================

WATER_NAMES: Final[FrozenSet[str]] = frozenset(["HOH", "DOD", "WAT", "H2O", "D2O", "TIP"])


def is_nucleotide(three_letter_code: Optional[str]) -> bool:
    """Check whether a component code names a known nucleotide."""
    if three_letter_code is None:
        return False
    return three_letter_code.strip().upper() in NUCLEOTIDES


def is_water(three_letter_code: Optional[str]) -> bool:
    """Check whether a component code names water."""
    if three_letter_code is None:
        return False
    return three_letter_code.strip().upper() in WATER_NAMES


def get_one_letter_code_amino(three_letter_code: Optional[str]) -> Optional[str]:
    """Return the one-letter code for an amino acid component.

    Modified residues map to the code of their parent amino acid.
    Returns None for components that are not recognised amino acids.
    """
    if three_letter_code is None:
        return None
    code = three_letter_code.strip().upper()
    if code in AA_3_TO_1:
        return AA_3_TO_1[code]
    if code in EXTENDED_AA_3_TO_1:
        return EXTENDED_AA_3_TO_1[code]
    parent = MODIFIED_RESIDUE_MAP.get(code)
    if parent is not None:
        return AA_3_TO_1[parent]
    return None


def get_one_letter_code_nucleotide(three_letter_code: Optional[str]) -> Optional[str]:
    """Return the one-letter code for a nucleotide component."""
    if three_letter_code is None:
        return None
    code = three_letter_code.strip().upper()
    if code in NUCLEOTIDE_3_TO_1:
        return NUCLEOTIDE_3_TO_1[code]
    if code in NUCLEOTIDES:
        return UNKNOWN_GROUP_LABEL
    return None
