"""Chemical component templates and the monomer dictionary.

A monomer dictionary answers "what kind of group is component XYZ?" by
returning a fresh, typed :class:`Group` prototype carrying its
:class:`ChemComp`. The built-in dictionary covers standard amino acids,
common modified amino acids, standard nucleotides, water and common ions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Dict, Optional, Protocol, Tuple

from cifstream.constants.atoms import DNA_ATOMS, RESIDUE_ATOMS, RNA_ATOMS, WATER_ATOMS
from cifstream.constants.bonds import NUCLEOTIDE_RESIDUE_BONDS, PROTEIN_RESIDUE_BONDS
from cifstream.constants.elements import ION_CHARGES, ION_ELEMENTS
from cifstream.constants.residues import (
    AA_3_TO_1,
    EXTENDED_AA_3_TO_1,
    MODIFIED_RESIDUE_MAP,
    WATER_NAMES,
)
from cifstream.data.parsers.structure import Group, GroupType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ChemComp:
    """Template for a chemical component.

    Attributes:
        id: Component code (e.g. 'ALA', 'DA', 'HOH')
        group_type: Residue variant instantiated for this component
        one_letter_code: One-letter code for amino acids
        atom_names: Heavy atom names of the component
        charges: Formal charge per atom name (zero charges omitted)
        bonds: Intra-residue bonds as atom name pairs
    """
    id: str
    group_type: GroupType
    one_letter_code: Optional[str] = None
    atom_names: Tuple[str, ...] = ()
    charges: Dict[str, int] = field(default_factory=dict)
    bonds: Tuple[Tuple[str, str], ...] = ()

    def get_charge(self, atom_name: str) -> int:
        return self.charges.get(atom_name, 0)

    def new_group(self) -> Group:
        return Group(
            group_type=self.group_type,
            pdb_name=self.id,
            one_letter_code=self.one_letter_code,
            chem_comp=self,
        )


class MonomerDictionary(Protocol):
    """Lookup of group prototypes by three-letter component code."""

    def get_group(self, code: str) -> Optional[Group]:
        ...

    def get_chem_comp(self, code: str) -> Optional[ChemComp]:
        ...


class EmptyMonomerDictionary:
    """A dictionary that knows nothing; group creation falls back to heuristics."""

    def get_group(self, code: str) -> Optional[Group]:
        return None

    def get_chem_comp(self, code: str) -> Optional[ChemComp]:
        return None


def _standard_components() -> Dict[str, ChemComp]:
    components: Dict[str, ChemComp] = {}

    for code, atoms in RESIDUE_ATOMS.items():
        components[code] = ChemComp(
            id=code,
            group_type=GroupType.AMINOACID,
            one_letter_code=AA_3_TO_1.get(code, EXTENDED_AA_3_TO_1.get(code)),
            atom_names=atoms,
            bonds=PROTEIN_RESIDUE_BONDS.get(code, ()),
        )
    # Formal charges as in the wwPDB component definitions
    for code, charges in (("ARG", {"NH2": 1}), ("LYS", {"NZ": 1})):
        components[code] = replace(components[code], charges=charges)
    for code, parent in MODIFIED_RESIDUE_MAP.items():
        if code in components:
            continue
        components[code] = ChemComp(
            id=code,
            group_type=GroupType.AMINOACID,
            one_letter_code=AA_3_TO_1[parent],
        )

    for code, atoms in {**RNA_ATOMS, **DNA_ATOMS}.items():
        components[code] = ChemComp(
            id=code,
            group_type=GroupType.NUCLEOTIDE,
            atom_names=atoms,
            bonds=NUCLEOTIDE_RESIDUE_BONDS.get(code, ()),
        )

    for code in WATER_NAMES:
        components[code] = ChemComp(id=code, group_type=GroupType.HETATM, atom_names=WATER_ATOMS)

    for code, charge in ION_CHARGES.items():
        atom_name = ION_ELEMENTS[code].upper()
        components[code] = ChemComp(
            id=code,
            group_type=GroupType.HETATM,
            atom_names=(atom_name,),
            charges={atom_name: charge},
        )
    return components


class StandardMonomerDictionary:
    """Monomer dictionary built from the bundled residue tables.

    Lookups are case-insensitive; every call to :meth:`get_group` returns
    a new group instance.
    """

    def __init__(self, extra: Optional[Dict[str, ChemComp]] = None):
        self._components = _standard_components()
        if extra:
            self._components.update({code.upper(): comp for code, comp in extra.items()})
        logger.debug("Monomer dictionary holds %d components", len(self._components))

    def get_chem_comp(self, code: str) -> Optional[ChemComp]:
        if code is None:
            return None
        return self._components.get(code.strip().upper())

    def get_group(self, code: str) -> Optional[Group]:
        chem_comp = self.get_chem_comp(code)
        if chem_comp is None:
            return None
        return chem_comp.new_group()

    def __contains__(self, code: str) -> bool:
        return self.get_chem_comp(code) is not None

    def __len__(self) -> int:
        return len(self._components)


@lru_cache(maxsize=1)
def get_default_monomer_dictionary() -> StandardMonomerDictionary:
    """Shared read-only instance of the built-in dictionary."""
    return StandardMonomerDictionary()
