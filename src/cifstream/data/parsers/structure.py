"""Core structure data classes for macromolecular structures.

This module provides the hierarchy materialised from an mmCIF file:
Structure -> Model -> Chain -> Group -> Atom, together with the entity
descriptors that chains are linked to.

Hierarchy objects compare by identity. Two groups describe "the same
residue" when their :class:`ResidueNumber` values are equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

import numpy as np

from cifstream.constants.elements import Element
from cifstream.constants.residues import (
    UNKNOWN_GROUP_LABEL,
    get_one_letter_code_nucleotide,
    is_water,
)
from cifstream.data.parsers.header import DBRef, PDBHeader, Site

if TYPE_CHECKING:
    from cifstream.data.parsers.chemcomp import ChemComp
    from cifstream.data.parsers.header import SeqMismatch


class GroupType(Enum):
    """Residue variants.

    The variant decides whether a group takes part in a polymer and
    whether it carries a one-letter amino acid code.
    """
    AMINOACID = "amino"
    NUCLEOTIDE = "nucleotide"
    HETATM = "hetatm"


class EntityType(Enum):
    """Entity types as written in ``_entity.type``."""
    POLYMER = "polymer"
    NONPOLYMER = "non-polymer"
    WATER = "water"
    MACROLIDE = "macrolide"
    BRANCHED = "branched"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["EntityType"]:
        """Look up an entity type by its mmCIF spelling, ignoring case."""
        if value is None:
            return None
        text = value.strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return None


@dataclass(frozen=True)
class ResidueNumber:
    """Author residue identifier: chain name, sequence number, insertion code."""
    chain_name: Optional[str]
    seq_num: Optional[int]
    ins_code: Optional[str] = None

    def __str__(self) -> str:
        ins = self.ins_code or ""
        return f"{self.chain_name}:{self.seq_num}{ins}"

    def same_position(self, other: "ResidueNumber") -> bool:
        """Compare sequence number and insertion code, ignoring the chain name."""
        return self.seq_num == other.seq_num and self.ins_code == other.ins_code


@dataclass(eq=False)
class Atom:
    """A single atom record.

    Attributes:
        name: Atom name (e.g., 'CA', 'N', "C1'")
        coords: Cartesian coordinates in Angstroms, shape (3,)
        element: Chemical element (Element.R when unrecognised)
        occupancy: Occupancy factor
        b_factor: Isotropic temperature factor
        alt_loc: Alternate location indicator, ' ' when absent
        serial: Atom serial number (``_atom_site.id``)
        charge: Formal charge
    """
    name: str
    coords: np.ndarray
    element: Element = Element.R
    occupancy: float = 1.0
    b_factor: float = 0.0
    alt_loc: str = " "
    serial: int = 0
    charge: int = 0
    group: Optional["Group"] = field(default=None, repr=False)
    bonds: List["Bond"] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not isinstance(self.coords, np.ndarray):
            self.coords = np.array(self.coords, dtype=np.float64)
        assert self.coords.shape == (3,), f"Coords must be shape (3,), got {self.coords.shape}"

    @property
    def x(self) -> float:
        return float(self.coords[0])

    @property
    def y(self) -> float:
        return float(self.coords[1])

    @property
    def z(self) -> float:
        return float(self.coords[2])

    def distance_to(self, other: "Atom") -> float:
        """Calculate Euclidean distance to another atom."""
        return float(np.linalg.norm(self.coords - other.coords))

    def copy(self) -> "Atom":
        """Copy scalar data and coordinates; the copy has no group and no bonds."""
        return Atom(
            name=self.name,
            coords=self.coords.copy(),
            element=self.element,
            occupancy=self.occupancy,
            b_factor=self.b_factor,
            alt_loc=self.alt_loc,
            serial=self.serial,
            charge=self.charge,
        )


@dataclass(eq=False)
class Bond:
    """A covalent or coordination bond between two atoms."""
    atom_a: Atom
    atom_b: Atom
    order: int = 1
    kind: str = "covale"

    @property
    def length(self) -> float:
        return self.atom_a.distance_to(self.atom_b)

    def get_other(self, atom: Atom) -> Atom:
        if atom is self.atom_a:
            return self.atom_b
        if atom is self.atom_b:
            return self.atom_a
        raise ValueError(f"Atom {atom.name} is not part of this bond")


@dataclass(eq=False)
class Group:
    """A residue: amino acid, nucleotide or heteroatom group.

    Attributes:
        group_type: Residue variant
        pdb_name: Three-letter component code (``label_comp_id``)
        one_letter_code: Amino acid code; None for nucleotides and heteroatoms
        internal_seq_id: ``label_seq_id``; None for non-polymer groups
        residue_number: Author residue number; None for unobserved SEQRES groups
        het_atom_in_file: Whether the atoms came from HETATM records
        atoms: Atoms owned by this group, in file order
        alt_locs: Alternate-location sibling groups
        chem_comp: Chemical component template, when known
    """
    group_type: GroupType = GroupType.HETATM
    pdb_name: Optional[str] = None
    one_letter_code: Optional[str] = None
    internal_seq_id: Optional[int] = None
    residue_number: Optional[ResidueNumber] = None
    het_atom_in_file: bool = False
    atoms: List[Atom] = field(default_factory=list)
    alt_locs: List["Group"] = field(default_factory=list, repr=False)
    chem_comp: Optional["ChemComp"] = field(default=None, repr=False)
    chain: Optional["Chain"] = field(default=None, repr=False)

    def add_atom(self, atom: Atom) -> None:
        atom.group = self
        self.atoms.append(atom)

    def has_atom(self, name: str) -> bool:
        return any(atom.name == name for atom in self.atoms)

    def get_atom(self, name: str) -> Optional[Atom]:
        for atom in self.atoms:
            if atom.name == name:
                return atom
        return None

    def add_alt_loc(self, group: "Group") -> None:
        group.chain = self.chain
        self.alt_locs.append(group)

    def get_alt_loc_group(self, alt_loc: str) -> Optional["Group"]:
        """Return the group whose atoms carry the given alt-loc indicator."""
        if self.atoms and self.atoms[0].alt_loc == alt_loc:
            return self
        for alt in self.alt_locs:
            if alt.atoms and alt.atoms[0].alt_loc == alt_loc:
                return alt
        return None

    def is_water(self) -> bool:
        return is_water(self.pdb_name)

    def is_polymeric(self) -> bool:
        return self.group_type in (GroupType.AMINOACID, GroupType.NUCLEOTIDE)

    def get_one_letter_code(self) -> str:
        """One-letter code for sequence strings ('X' when unknown)."""
        if self.group_type == GroupType.AMINOACID:
            return self.one_letter_code or UNKNOWN_GROUP_LABEL
        if self.group_type == GroupType.NUCLEOTIDE:
            return get_one_letter_code_nucleotide(self.pdb_name) or UNKNOWN_GROUP_LABEL
        return UNKNOWN_GROUP_LABEL

    def copy_without_atoms(self) -> "Group":
        """A new group with this group's residue attributes and no atoms.

        Used for alt-loc siblings and SEQRES clones. The copy belongs to no
        chain and has no alt-locs of its own.
        """
        return Group(
            group_type=self.group_type,
            pdb_name=self.pdb_name,
            one_letter_code=self.one_letter_code,
            internal_seq_id=self.internal_seq_id,
            residue_number=self.residue_number,
            het_atom_in_file=self.het_atom_in_file,
            chem_comp=self.chem_comp,
        )

    def clone(self) -> "Group":
        """Deep copy: atoms are copied, alt-loc siblings are cloned."""
        copy = self.copy_without_atoms()
        for atom in self.atoms:
            copy.add_atom(atom.copy())
        for alt in self.alt_locs:
            copy.add_alt_loc(alt.clone())
        return copy

    def iter_atoms_with_alt_locs(self) -> Iterator[Atom]:
        yield from self.atoms
        for alt in self.alt_locs:
            yield from alt.atoms


@dataclass(eq=False)
class Chain:
    """A chain within one model.

    Attributes:
        id: Internal chain identifier (``label_asym_id``)
        name: Author chain identifier (``auth_asym_id``)
        groups: Observed groups in file order
        seqres_groups: Declared SEQRES groups, populated at finish
        entity_info: Entity this chain belongs to, populated at finish
        seq_mismatches: SEQRES vs reference database differences
    """
    id: Optional[str] = None
    name: Optional[str] = None
    groups: List[Group] = field(default_factory=list)
    seqres_groups: List[Group] = field(default_factory=list)
    entity_info: Optional["EntityInfo"] = field(default=None, repr=False)
    seq_mismatches: List["SeqMismatch"] = field(default_factory=list, repr=False)

    def add_group(self, group: Group) -> None:
        group.chain = self
        for alt in group.alt_locs:
            alt.chain = self
        self.groups.append(group)

    def set_seqres_groups(self, groups: List[Group]) -> None:
        """Set the SEQRES view; groups without a chain are adopted."""
        for group in groups:
            if group.chain is None:
                group.chain = self
        self.seqres_groups = list(groups)

    def get_group_by_pdb(self, residue_number: ResidueNumber) -> Optional[Group]:
        """Find an observed group by author sequence number and insertion code."""
        for group in self.groups:
            if group.residue_number is not None and group.residue_number.same_position(residue_number):
                return group
        return None

    def is_water_only(self) -> bool:
        return bool(self.groups) and all(group.is_water() for group in self.groups)

    def is_pure_non_polymer(self) -> bool:
        if not self.groups:
            return False
        return all(not group.is_polymeric() and not group.is_water() for group in self.groups)

    @property
    def entity_type(self) -> Optional[EntityType]:
        return self.entity_info.type if self.entity_info is not None else None

    @property
    def atoms(self) -> List[Atom]:
        return [atom for group in self.groups for atom in group.atoms]

    @property
    def atom_sequence(self) -> str:
        return "".join(group.get_one_letter_code() for group in self.groups if group.is_polymeric())

    @property
    def seqres_sequence(self) -> str:
        return "".join(group.get_one_letter_code() for group in self.seqres_groups)

    def copy_as_seqres(self) -> "Chain":
        """A new chain owning clones of this chain's groups."""
        copy = Chain(id=self.id, name=self.name)
        for group in self.groups:
            copy.add_group(group.clone())
        return copy


@dataclass(eq=False)
class Model:
    """An ordered list of chains; identified only by position."""
    chains: List[Chain] = field(default_factory=list)

    def get_chain(self, chain_id: str) -> Optional[Chain]:
        for chain in self.chains:
            if chain.id == chain_id:
                return chain
        return None

    @property
    def water_chains(self) -> List[Chain]:
        return [chain for chain in self.chains if chain.is_water_only()]

    @property
    def non_polymer_chains(self) -> List[Chain]:
        return [chain for chain in self.chains if chain.is_pure_non_polymer()]

    @property
    def polymer_chains(self) -> List[Chain]:
        return [
            chain for chain in self.chains
            if not chain.is_water_only() and not chain.is_pure_non_polymer()
        ]


@dataclass(eq=False)
class EntityInfo:
    """An mmCIF entity: a distinct molecule that one or more chains instantiate.

    Attributes:
        mol_id: Entity id as an integer
        description: ``_entity.pdbx_description``
        type: Entity type
        chains: Chains belonging to this entity (all models)
    """
    mol_id: int
    description: Optional[str] = None
    type: Optional[EntityType] = None
    chains: List[Chain] = field(default_factory=list, repr=False)

    # Source organism and expression system
    organism_scientific: Optional[str] = None
    organism_common: Optional[str] = None
    organism_taxid: Optional[str] = None
    expression_system: Optional[str] = None
    expression_system_taxid: Optional[str] = None
    atcc: Optional[str] = None
    cell: Optional[str] = None

    def add_chain(self, chain: Chain) -> None:
        if not any(existing is chain for existing in self.chains):
            self.chains.append(chain)
        chain.entity_info = self

    def get_chain_ids(self) -> List[str]:
        ids: List[str] = []
        for chain in self.chains:
            if chain.id is not None and chain.id not in ids:
                ids.append(chain.id)
        return ids


@dataclass(eq=False)
class Structure:
    """A complete macromolecular structure.

    Attributes:
        models: Models in file order
        header: Entry metadata
        entity_infos: Entity descriptors
        db_refs: Cross-references to sequence databases
        sites: Site descriptions with their member groups
        bonds: Bonds created at finish
    """
    models: List[Model] = field(default_factory=list)
    header: PDBHeader = field(default_factory=PDBHeader)
    entity_infos: List[EntityInfo] = field(default_factory=list)
    db_refs: List[DBRef] = field(default_factory=list)
    sites: List[Site] = field(default_factory=list)
    bonds: List[Bond] = field(default_factory=list)

    @property
    def pdb_id(self) -> Optional[str]:
        return self.header.id_code

    @property
    def num_models(self) -> int:
        return len(self.models)

    def add_model(self, chains: List[Chain]) -> Model:
        model = Model(chains=list(chains))
        self.models.append(model)
        return model

    def get_chains(self, model_index: int = 0) -> List[Chain]:
        if model_index >= len(self.models):
            return []
        return self.models[model_index].chains

    def get_chain_by_id(self, chain_id: str, model_index: int = 0) -> Optional[Chain]:
        if model_index >= len(self.models):
            return None
        return self.models[model_index].get_chain(chain_id)

    def get_polymer_chains(self, model_index: int = 0) -> List[Chain]:
        if model_index >= len(self.models):
            return []
        return self.models[model_index].polymer_chains

    def get_non_polymer_chains(self, model_index: int = 0) -> List[Chain]:
        if model_index >= len(self.models):
            return []
        return self.models[model_index].non_polymer_chains

    def get_water_chains(self, model_index: int = 0) -> List[Chain]:
        if model_index >= len(self.models):
            return []
        return self.models[model_index].water_chains

    def get_poly_chain_by_pdb(self, author_id: str, model_index: int = 0) -> Optional[Chain]:
        """Find the polymer chain with the given author chain name."""
        for chain in self.get_polymer_chains(model_index):
            if chain.name == author_id:
                return chain
        return None

    def get_entity_by_id(self, mol_id: int) -> Optional[EntityInfo]:
        for entity in self.entity_infos:
            if entity.mol_id == mol_id:
                return entity
        return None

    def iter_groups(self, model_index: int = 0) -> Iterator[Group]:
        for chain in self.get_chains(model_index):
            yield from chain.groups

    def iter_atoms(self, model_index: int = 0) -> Iterator[Atom]:
        for group in self.iter_groups(model_index):
            yield from group.atoms

    @property
    def num_atoms(self) -> int:
        return sum(1 for _ in self.iter_atoms())

    def chain_summary(self) -> Dict[str, int]:
        """Chain id to observed group count for the first model."""
        return {chain.id: len(chain.groups) for chain in self.get_chains()}
