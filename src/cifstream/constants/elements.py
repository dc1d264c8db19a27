"""
Chemical element vocabulary.

Contains the element enumeration used for atom records, the generic
placeholder element for unrecognised symbols, and the formal charges
assumed for common monatomic ions.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Final, Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Element Vocabulary
# =============================================================================

# Periodic table symbols, in atomic-number order
PERIODIC_TABLE: Final[tuple[str, ...]] = (
    "H", "He",
    "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar",
    "K", "Ca", "Sc", "Ti", "V", "Cr", "Mn", "Fe", "Co", "Ni", "Cu", "Zn",
    "Ga", "Ge", "As", "Se", "Br", "Kr",
    "Rb", "Sr", "Y", "Zr", "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd",
    "In", "Sn", "Sb", "Te", "I", "Xe",
    "Cs", "Ba",
    "La", "Ce", "Pr", "Nd", "Pm", "Sm", "Eu", "Gd", "Tb", "Dy", "Ho", "Er",
    "Tm", "Yb", "Lu",
    "Hf", "Ta", "W", "Re", "Os", "Ir", "Pt", "Au", "Hg",
    "Tl", "Pb", "Bi", "Po", "At", "Rn",
    "Fr", "Ra",
    "Ac", "Th", "Pa", "U", "Np", "Pu", "Am", "Cm", "Bk", "Cf", "Es", "Fm",
    "Md", "No", "Lr",
)

# Hydrogen isotopes written as their own symbols in deposited files
HYDROGEN_ISOTOPES: Final[tuple[str, ...]] = ("D", "T")

# Generic element for anything that is not a known symbol
GENERIC_ELEMENT_SYMBOL: Final[str] = "R"


Element = Enum(
    "Element",
    [(symbol, symbol) for symbol in PERIODIC_TABLE + HYDROGEN_ISOTOPES + (GENERIC_ELEMENT_SYMBOL,)],
    module=__name__,
)
Element.__doc__ = """Chemical elements keyed by their canonical symbol.

``Element.R`` is the generic element assigned to unrecognised symbols.
"""

_BY_UPPER_SYMBOL: Final[dict[str, "Element"]] = {
    member.value.upper(): member for member in Element
}


def element_from_symbol(symbol: Optional[str]) -> "Element":
    """Map an element symbol to an :class:`Element`, ignoring case.

    Unknown or missing symbols map to ``Element.R`` and are reported at
    info level.
    """
    if symbol:
        element = _BY_UPPER_SYMBOL.get(symbol.strip().upper())
        if element is not None:
            return element
    logger.info("Element %r was not recognised, assigning generic element R", symbol)
    return Element.R


# =============================================================================
# Ion Charges
# =============================================================================

# Formal charges for monatomic ion components (keyed by chem comp id)
ION_CHARGES: Final[dict[str, int]] = {
    # Monovalent
    "NA": 1, "K": 1, "LI": 1, "RB": 1, "CS": 1, "AG": 1, "CU1": 1,
    "CL": -1, "BR": -1, "F": -1, "IOD": -1,
    # Divalent
    "MG": 2, "CA": 2, "ZN": 2, "MN": 2, "CO": 2, "NI": 2, "CU": 2,
    "CD": 2, "BA": 2, "SR": 2, "HG": 2, "FE2": 2, "PB": 2,
    # Trivalent
    "FE": 3, "AL": 3, "GA": 3, "LA": 3, "GD": 3, "YB": 3, "AU3": 3,
}

# Element of each ion component
ION_ELEMENTS: Final[dict[str, str]] = {
    "NA": "Na", "K": "K", "LI": "Li", "RB": "Rb", "CS": "Cs", "AG": "Ag",
    "CU1": "Cu", "CL": "Cl", "BR": "Br", "F": "F", "IOD": "I",
    "MG": "Mg", "CA": "Ca", "ZN": "Zn", "MN": "Mn", "CO": "Co", "NI": "Ni",
    "CU": "Cu", "CD": "Cd", "BA": "Ba", "SR": "Sr", "HG": "Hg", "FE2": "Fe",
    "PB": "Pb", "FE": "Fe", "AL": "Al", "GA": "Ga", "LA": "La", "GD": "Gd",
    "YB": "Yb", "AU3": "Au",
}
