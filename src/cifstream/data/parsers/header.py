"""Entry-level metadata records.

These are the value records filled from the header categories and during
the final linking pass: the PDB header itself, revision records, database
cross-references, sites, SEQRES mismatches and bioassembly descriptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Dict, List, Optional

from cifstream.data.parsers.xtal import PDBCrystallographicInfo

if TYPE_CHECKING:
    from cifstream.data.parsers.structure import Group
    from cifstream.processing.bioassembly import BiologicalAssemblyTransformation


@dataclass
class DatabasePdbrevRecord:
    """One ``_database_PDB_rev_record`` row."""
    rev_num: Optional[str] = None
    type: Optional[str] = None
    details: Optional[str] = None


@dataclass
class BioAssemblyInfo:
    """A biological assembly and the transformations that build it.

    Attributes:
        id: Numeric assembly id
        macromolecular_size: Number of polymer chain copies in the assembly
        transforms: Operators to apply, one per (operator, chain) pair
    """
    id: int
    macromolecular_size: int = 0
    transforms: List["BiologicalAssemblyTransformation"] = field(default_factory=list)


@dataclass
class PDBHeader:
    """Header metadata for an entry.

    Numeric quality indicators and dates are None when the file does not
    provide a usable value.
    """
    id_code: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    classification: Optional[str] = None
    authors: Optional[str] = None
    experimental_technique: Optional[str] = None

    resolution: Optional[float] = None
    r_free: Optional[float] = None
    r_work: Optional[float] = None

    dep_date: Optional[date] = None
    rel_date: Optional[date] = None
    mod_date: Optional[date] = None

    revision_records: List[DatabasePdbrevRecord] = field(default_factory=list)
    crystallographic_info: PDBCrystallographicInfo = field(default_factory=PDBCrystallographicInfo)
    bio_assemblies: Dict[int, BioAssemblyInfo] = field(default_factory=dict)

    @property
    def nr_bio_assemblies(self) -> int:
        return len(self.bio_assemblies)


@dataclass
class DBRef:
    """Cross-reference from a chain segment to a sequence database entry.

    Author numbering is ``seq_begin``/``seq_end`` with insertion codes
    (' ' when absent); database numbering is ``db_seq_begin``/``db_seq_end``.
    """
    id_code: Optional[str] = None
    database: Optional[str] = None
    db_accession: Optional[str] = None
    db_id_code: Optional[str] = None
    chain_name: Optional[str] = None

    seq_begin: Optional[int] = None
    ins_begin: str = " "
    seq_end: Optional[int] = None
    ins_end: str = " "

    db_seq_begin: Optional[int] = None
    id_ins_begin: str = " "
    db_seq_end: Optional[int] = None
    id_ins_end: str = " "


@dataclass
class Site:
    """A site (binding, active, modified residue) and its member groups."""
    site_id: str
    description: Optional[str] = None
    ev_code: Optional[str] = None
    groups: List["Group"] = field(default_factory=list, repr=False)

    def add_group(self, group: "Group") -> None:
        if not any(existing is group for existing in self.groups):
            self.groups.append(group)


@dataclass
class SeqMismatch:
    """A SEQRES residue that differs from the reference database sequence.

    Attributes:
        details: Kind of difference (e.g. 'engineered mutation')
        ins_code: Author insertion code
        orig_group: Residue in the reference database (``db_mon_id``)
        pdb_group: Residue in the entry (``mon_id``)
        pdb_res_num: Author residue number
        db_accession: Reference database accession
        seq_num: SEQRES index
    """
    details: Optional[str] = None
    ins_code: Optional[str] = None
    orig_group: Optional[str] = None
    pdb_group: Optional[str] = None
    pdb_res_num: Optional[str] = None
    db_accession: Optional[str] = None
    seq_num: Optional[int] = None
