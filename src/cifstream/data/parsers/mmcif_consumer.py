"""Streaming consumer that builds a Structure from mmCIF categories.

A tokenizer hands categories to :class:`CifFileConsumer` one at a time, in
file order:

- ``prepare()`` resets all accumulators
- ``consume(category)`` ingests atom records and header categories, and
  buffers the categories that can only be interpreted once the whole file
  has been seen (entities, asym ids, references, connections, assemblies)
- ``finish()`` links the buffered categories to the atom-derived chains
  and returns the finished Structure

Atom records are streamed into Model -> Chain -> Group -> Atom. Chain and
residue boundaries are detected from changes in ``label_asym_id`` and the
author residue number; model boundaries from ``pdbx_PDB_model_num``.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import numpy as np

from cifstream.config import ParsingConfig
from cifstream.constants.elements import element_from_symbol
from cifstream.constants.residues import get_one_letter_code_amino, is_nucleotide
from cifstream.data.parsers.category import Category
from cifstream.data.parsers.chemcomp import MonomerDictionary, get_default_monomer_dictionary
from cifstream.data.parsers.groups import ATOM_RECORD, create_group, one_letter_code_for
from cifstream.data.parsers.header import (
    BioAssemblyInfo,
    DatabasePdbrevRecord,
    DBRef,
    SeqMismatch,
    Site,
)
from cifstream.data.parsers.structure import (
    Atom,
    Chain,
    EntityInfo,
    EntityType,
    Group,
    GroupType,
    ResidueNumber,
    Structure,
)
from cifstream.data.parsers.values import (
    ParseError,
    as_optional_char,
    as_optional_date,
    as_optional_double,
    as_optional_float,
    as_optional_int,
)
from cifstream.data.parsers.xtal import CrystalCell, SpaceGroupTable
from cifstream.processing.bioassembly import BiologicalAssemblyBuilder, parse_operators
from cifstream.processing.bonds import BondMaker
from cifstream.processing.charges import ChargeAdder
from cifstream.processing.entities import create_purely_non_poly_entities, find_poly_entities
from cifstream.processing.seqres import align_seqres, remove_seqres_heterogeneity, store_unaligned_seqres
from cifstream.processing.structure_tools import clean_up_alt_locs, has_non_deuterated_equiv


logger = logging.getLogger(__name__)


# Categories kept verbatim until finish()
DEFERRED_CATEGORIES = (
    "entity",
    "entity_poly",
    "entity_src_gen",
    "entity_src_nat",
    "pdbx_entity_src_syn",
    "struct_asym",
    "struct_ref",
    "struct_ref_seq_dif",
    "struct_conn",
    "struct_site_gen",
    "struct_ncs_oper",
    "pdbx_struct_assembly",
    "pdbx_struct_assembly_gen",
    "pdbx_struct_oper_list",
)

# Older dictionaries spell the synthetic source category without the prefix
CATEGORY_ALIASES = {
    "entity_src_syn": "pdbx_entity_src_syn",
}

CA_ATOM_NAME = "CA"
CARBON_SYMBOL = "C"
SUGAR_DESCRIPTION = "SUGAR"
NCS_GENERATE_CODE = "generate"
RESOLUTION_REMARK_ID = "2"
RESOLUTION_UNIT = "ANGSTROM"

_NEW = "new"
_CONSUMING = "consuming"
_FINISHED = "finished"


class ConsumerStateError(RuntimeError):
    """A consumer method was called out of order."""


def _insertion_code_or_blank(value: str) -> str:
    """First character of a raw insertion code cell, ' ' when absent."""
    code = as_optional_char(value)
    return code if code is not None else " "


def _read_transform(category: Category, row: int, matrix_item: str, vector_item: str) -> Optional[np.ndarray]:
    """Read ``matrix_item[i][j]`` and ``vector_item[i]`` of a row into a 4x4 matrix.

    Returns None when any of the twelve values is absent.

    Raises:
        ParseError: If a present value is not a number
    """
    transform = np.eye(4, dtype=np.float64)
    for i in range(3):
        items = [f"{matrix_item}[{i + 1}][{j + 1}]" for j in range(3)] + [f"{vector_item}[{i + 1}]"]
        for j, item in enumerate(items):
            value = as_optional_double(category.get_column(item).get_string_data(row))
            if value is None:
                return None
            transform[i, j] = value
    return transform


class CifFileConsumer:
    """Builds a :class:`Structure` from a stream of mmCIF categories.

    Example:
        >>> consumer = CifFileConsumer(ParsingConfig(create_atom_bonds=True))
        >>> consumer.prepare()
        >>> for category in categories:
        ...     consumer.consume(category)
        >>> structure = consumer.finish()
    """

    def __init__(
        self,
        config: Optional[ParsingConfig] = None,
        dictionary: Optional[MonomerDictionary] = None,
        space_groups: Optional[SpaceGroupTable] = None,
    ):
        """Initialize the consumer.

        Args:
            config: Parsing options; defaults to ``ParsingConfig()``
            dictionary: Monomer dictionary for group creation, bonds and
                charges; defaults to the built-in dictionary
            space_groups: Space group lookup; defaults to the built-in table
        """
        self.config = config or ParsingConfig()
        self.dictionary = dictionary if dictionary is not None else get_default_monomer_dictionary()
        self.space_groups = space_groups or SpaceGroupTable()
        self.assembly_builder = BiologicalAssemblyBuilder()

        self._handlers: Dict[str, Callable[[Category], None]] = {
            "atom_site": self.consume_atom_site,
            "atom_sites": self.consume_atom_sites,
            "audit_author": self.consume_audit_author,
            "cell": self.consume_cell,
            "database_pdb_remark": self.consume_database_pdb_remark,
            "database_pdb_rev": self.consume_database_pdb_rev,
            "database_pdb_rev_record": self.consume_database_pdb_rev_record,
            "entity_poly_seq": self.consume_entity_poly_seq,
            "exptl": self.consume_exptl,
            "pdbx_audit_revision_history": self.consume_pdbx_audit_revision_history,
            "pdbx_database_status": self.consume_pdbx_database_status,
            "refine": self.consume_refine,
            "struct": self.consume_struct,
            "struct_keywords": self.consume_struct_keywords,
            "struct_ref_seq": self.consume_struct_ref_seq,
            "struct_site": self.consume_struct_site,
            "symmetry": self.consume_symmetry,
        }
        for name in DEFERRED_CATEGORIES:
            self._handlers[name] = self._store_deferred

        self._state = _NEW
        self._reset()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _reset(self) -> None:
        self.structure = Structure()

        self._all_models: List[List[Chain]] = []
        self._current_model: List[Chain] = []
        self._current_chain: Optional[Chain] = None
        self._current_group: Optional[Group] = None
        self._current_model_number: Optional[str] = None

        # entity_id -> SEQRES chain from _entity_poly_seq
        self._entity_chains: Dict[str, Chain] = {}
        self._seqres_chains: List[Chain] = []

        self._asym_id_to_entity_id: Dict[str, str] = {}
        self._asym_id_to_author_id: Dict[str, str] = {}

        self._parsed_scale_matrix: Optional[np.ndarray] = None
        self._deferred: Dict[str, Category] = {
            name: Category.empty(name) for name in DEFERRED_CATEGORIES
        }

    def prepare(self) -> None:
        """Start a new document, discarding anything consumed before."""
        self._reset()
        self._state = _CONSUMING

    def consume(self, category: Category) -> None:
        """Dispatch one category to its handler.

        Categories without a handler are ignored.

        Raises:
            ConsumerStateError: If called before ``prepare`` or after ``finish``
        """
        self._check_consuming(category.name)
        name = category.name.lower()
        name = CATEGORY_ALIASES.get(name, name)
        handler = self._handlers.get(name)
        if handler is None:
            logger.debug(f"No handler for category _{category.name}, ignoring it")
            return
        handler(category)

    def get_container(self) -> Structure:
        """The structure under construction (the same object ``finish`` returns)."""
        return self.structure

    def _check_consuming(self, what: str) -> None:
        if self._state == _NEW:
            raise ConsumerStateError(f"prepare() must be called before consuming _{what}")
        if self._state == _FINISHED:
            raise ConsumerStateError(f"Cannot consume _{what} after finish()")

    def _store_deferred(self, category: Category) -> None:
        name = category.name.lower()
        name = CATEGORY_ALIASES.get(name, name)
        self._deferred[name] = category

    # =========================================================================
    # Atom records
    # =========================================================================

    def consume_atom_site(self, atom_site: Category) -> None:
        """Stream ``_atom_site`` rows into the model/chain/group hierarchy."""
        self._check_consuming("atom_site")
        if self.config.header_only:
            return

        group_pdb = atom_site.get_column("group_PDB")
        label_asym_id = atom_site.get_column("label_asym_id")
        auth_asym_id = atom_site.get_column("auth_asym_id")
        label_comp_id = atom_site.get_column("label_comp_id")
        label_atom_id = atom_site.get_column("label_atom_id")
        label_seq_id = atom_site.get_column("label_seq_id")
        label_alt_id = atom_site.get_column("label_alt_id")
        auth_seq_id = atom_site.get_column("auth_seq_id")
        ins_code_col = atom_site.get_column("pdbx_PDB_ins_code")
        type_symbol = atom_site.get_column("type_symbol")
        model_num = atom_site.get_column("pdbx_PDB_model_num")

        for row in range(atom_site.row_count):
            record = (group_pdb.get(row) or ATOM_RECORD).strip()
            comp_id = label_comp_id.get(row)
            internal_seq_id = self._int_or_none(label_seq_id, row, "label_seq_id")

            # Model boundary
            model_number = model_num.get(row)
            if self._current_model_number is None:
                self._current_model_number = model_number
            elif model_number != self._current_model_number:
                self._flush_group()
                self._all_models.append(self._current_model)
                self._current_model = []
                self._current_chain = None
                self._current_group = None
                self._current_model_number = model_number

            # Chain boundary
            asym_id = label_asym_id.get(row)
            auth_id = auth_asym_id.get(row)
            start_of_new_chain = False
            if self._current_chain is None or asym_id != self._current_chain.id:
                self._flush_group()
                chain = self._find_current_model_chain(asym_id)
                if chain is None:
                    chain = Chain(id=asym_id, name=auth_id)
                    self._current_model.append(chain)
                self._current_chain = chain
                start_of_new_chain = True

            # Residue boundary
            residue_number = ResidueNumber(
                auth_id,
                self._int_or_none(auth_seq_id, row, "auth_seq_id"),
                as_optional_char(ins_code_col.get_string_data(row)),
            )
            alt_loc = label_alt_id.get(row)
            alt_group = None
            if (
                self._current_group is None
                or start_of_new_chain
                or residue_number != self._current_group.residue_number
            ):
                self._flush_group()
                self._current_group = self._new_group(record, comp_id, internal_seq_id)
                self._current_group.residue_number = residue_number
            elif alt_loc is not None:
                alt_group = self._get_alt_loc_group(record, alt_loc, comp_id, internal_seq_id)

            atom_name = label_atom_id.get(row) or ""
            symbol = type_symbol.get(row)
            if self.config.parse_ca_only and atom_name != CA_ATOM_NAME and symbol == CARBON_SYMBOL:
                continue

            atom = self._create_atom(atom_site, row, atom_name, symbol, alt_loc)
            if atom is None:
                continue

            target = alt_group if alt_group is not None else self._current_group
            if target.has_atom(atom.name) and not has_non_deuterated_equiv(atom, target):
                logger.debug(
                    f"Skipping duplicate atom {atom.name} in residue {target.residue_number} "
                    f"({target.pdb_name})"
                )
                continue
            target.add_atom(atom)

    def _create_atom(
        self,
        atom_site: Category,
        row: int,
        atom_name: str,
        symbol: Optional[str],
        alt_loc: Optional[str],
    ) -> Optional[Atom]:
        """Decode the atom fields of one row; None when coordinates are unusable."""
        try:
            coords = [
                as_optional_double(atom_site.get_column(name).get_string_data(row))
                for name in ("Cartn_x", "Cartn_y", "Cartn_z")
            ]
        except ParseError as e:
            logger.warning(f"Skipping atom {atom_name} in _atom_site row {row + 1}: {e}")
            return None
        if any(c is None for c in coords):
            logger.warning(f"Skipping atom {atom_name} in _atom_site row {row + 1}: missing coordinates")
            return None

        occupancy = self._float_or_default(atom_site, "occupancy", row, 1.0)
        b_factor = self._float_or_default(atom_site, "B_iso_or_equiv", row, 0.0)
        serial = self._int_or_none(atom_site.get_column("id"), row, "id")

        return Atom(
            name=atom_name,
            coords=np.array(coords, dtype=np.float64),
            element=element_from_symbol(symbol),
            occupancy=occupancy,
            b_factor=b_factor,
            alt_loc=alt_loc[0] if alt_loc else " ",
            serial=serial if serial is not None else 0,
        )

    def _new_group(self, record: str, comp_id: Optional[str], internal_seq_id: Optional[int]) -> Group:
        group = create_group(
            record,
            one_letter_code_for(record, comp_id),
            comp_id,
            internal_seq_id,
            self.dictionary,
        )
        group.pdb_name = comp_id
        group.het_atom_in_file = record != ATOM_RECORD
        return group

    def _get_alt_loc_group(
        self,
        record: str,
        alt_loc: str,
        comp_id: Optional[str],
        internal_seq_id: Optional[int],
    ) -> Group:
        """Find or create the group that atoms with this alt-loc belong to."""
        current = self._current_group
        existing = current.get_alt_loc_group(alt_loc[0])
        if existing is not None:
            return existing

        if comp_id == current.pdb_name:
            if not current.atoms:
                return current
            alt_group = current.copy_without_atoms()
            current.add_alt_loc(alt_group)
            return alt_group

        # Microheterogeneity: a different component at the same position
        alt_group = self._new_group(record, comp_id, internal_seq_id)
        alt_group.residue_number = current.residue_number
        current.add_alt_loc(alt_group)
        return alt_group

    def _find_current_model_chain(self, asym_id: Optional[str]) -> Optional[Chain]:
        for chain in self._current_model:
            if chain.id == asym_id:
                return chain
        return None

    def _flush_group(self) -> None:
        if self._current_group is not None and self._current_chain is not None:
            self._current_chain.add_group(self._current_group)
        self._current_group = None

    @staticmethod
    def _int_or_none(column, row: int, label: str) -> Optional[int]:
        try:
            return as_optional_int(column.get_string_data(row))
        except ParseError as e:
            logger.warning(f"Could not parse {label} in row {row + 1}, leaving it unset: {e}")
            return None

    @staticmethod
    def _float_or_default(category: Category, column: str, row: int, default: float) -> float:
        try:
            value = as_optional_float(category.get_column(column).get_string_data(row))
        except ParseError as e:
            logger.warning(f"Could not parse {column} in row {row + 1}, using {default}: {e}")
            return default
        return default if value is None else value

    def consume_atom_sites(self, atom_sites: Category) -> None:
        """Keep the deposited fractionalisation matrix for the finish-time check."""
        self._check_consuming("atom_sites")
        if atom_sites.row_count == 0:
            return

        crystal_info = self.structure.header.crystallographic_info
        try:
            matrix = _read_transform(atom_sites, 0, "fract_transf_matrix", "fract_transf_vector")
        except ParseError as e:
            logger.warning(
                f"Some values in _atom_sites.fract_transf_matrix or fract_transf_vector could not be "
                f"parsed; cannot check the coordinate frame convention: {e}"
            )
            matrix = None
        if matrix is None:
            crystal_info.non_standard_coord_frame_convention = False
        self._parsed_scale_matrix = matrix

    # =========================================================================
    # Header categories
    # =========================================================================

    def consume_audit_author(self, audit_author: Category) -> None:
        """Append authors as 'initials+lastname', comma separated."""
        self._check_consuming("audit_author")
        header = self.structure.header
        names = audit_author.get_column("name")
        for row in range(audit_author.row_count):
            name = names.get(row)
            if name is None:
                continue
            last_name, _, initials = name.partition(",")
            author = initials.replace(" ", "") + last_name.replace(" ", "")
            header.authors = author if header.authors is None else f"{header.authors},{author}"

    def consume_cell(self, cell: Category) -> None:
        self._check_consuming("cell")
        if not cell.is_defined() or cell.row_count == 0:
            return

        crystal_info = self.structure.header.crystallographic_info
        names = ("length_a", "length_b", "length_c", "angle_alpha", "angle_beta", "angle_gamma")
        try:
            values = [as_optional_double(cell.get_column(name).get_string_data(0)) for name in names]
        except ParseError as e:
            crystal_info.crystal_cell = None
            logger.info(f"Could not parse some cell parameters ({e}), ignoring _cell")
            return
        if any(value is None for value in values):
            logger.debug("Cell parameters are incomplete, ignoring _cell")
            return

        crystal_cell = CrystalCell(*values)
        if not crystal_cell.is_cell_reasonable():
            # Non-crystallographic entries often carry a 1 1 1 90 90 90 cell
            logger.debug(
                f"The crystal cell does not have reasonable dimensions (at least one edge below "
                f"{CrystalCell.MIN_VALID_CELL_SIZE}), discarding it"
            )
            return
        crystal_info.crystal_cell = crystal_cell

    def consume_database_pdb_remark(self, remark: Category) -> None:
        """Read the resolution from REMARK 2 ('... 2.10 ANGSTROMS.')."""
        self._check_consuming("database_PDB_remark")
        ids = remark.get_column("id")
        texts = remark.get_column("text")
        for row in range(remark.row_count):
            if ids.get(row) != RESOLUTION_REMARK_ID:
                continue
            text = texts.get_string_data(row)
            index = text.find(RESOLUTION_UNIT)
            if index <= 5:
                continue
            try:
                resolution = as_optional_float(text[index - 5:index])
            except ParseError:
                logger.info(f"Could not parse resolution from remark line, ignoring it: {text!r}")
                continue
            if resolution is not None:
                self.structure.header.resolution = resolution

    def consume_database_pdb_rev(self, database_pdb_rev: Category) -> None:
        """Revision 1 gives deposition and release dates; later ones the modification date."""
        self._check_consuming("database_PDB_rev")
        header = self.structure.header
        nums = database_pdb_rev.get_column("num")
        for row in range(database_pdb_rev.row_count):
            date_text = database_pdb_rev.get_column("date").get_string_data(row)
            if nums.get(row) == "1":
                original = database_pdb_rev.get_column("date_original").get_string_data(row)
                header.dep_date = self._parse_date(original, "deposition") or header.dep_date
                header.rel_date = self._parse_date(date_text, "release") or header.rel_date
            else:
                header.mod_date = self._parse_date(date_text, "modification") or header.mod_date

    def consume_database_pdb_rev_record(self, rev_record: Category) -> None:
        self._check_consuming("database_PDB_rev_record")
        for row in range(rev_record.row_count):
            self.structure.header.revision_records.append(
                DatabasePdbrevRecord(
                    rev_num=rev_record.get_column("rev_num").get(row),
                    type=rev_record.get_column("type").get(row),
                    details=rev_record.get_column("details").get(row),
                )
            )

    def consume_exptl(self, exptl: Category) -> None:
        self._check_consuming("exptl")
        methods = exptl.get_column("method")
        for row in range(exptl.row_count):
            method = methods.get(row)
            if method is not None:
                self.structure.header.experimental_technique = method

    def consume_pdbx_audit_revision_history(self, history: Category) -> None:
        """Ordinal 1 is the release; the last later revision is the modification date."""
        self._check_consuming("pdbx_audit_revision_history")
        header = self.structure.header
        ordinals = history.get_column("ordinal")
        dates = history.get_column("revision_date")
        for row in range(history.row_count):
            if ordinals.get(row) == "1":
                header.rel_date = self._parse_date(dates.get_string_data(row), "release") or header.rel_date
            else:
                header.mod_date = (
                    self._parse_date(dates.get_string_data(row), "revision") or header.mod_date
                )

    def consume_pdbx_database_status(self, status: Category) -> None:
        self._check_consuming("pdbx_database_status")
        column = status.get_column("recvd_initial_deposition_date")
        if not column.is_defined():
            return
        header = self.structure.header
        for row in range(status.row_count):
            header.dep_date = self._parse_date(column.get_string_data(row), "deposition") or header.dep_date

    def consume_refine(self, refine: Category) -> None:
        """Resolution, R-free and R-work; the last value present wins."""
        self._check_consuming("refine")
        header = self.structure.header
        fields = (
            ("resolution", "ls_d_res_high"),
            ("r_free", "ls_R_factor_R_free"),
            ("r_work", "ls_R_factor_R_work"),
        )
        for row in range(refine.row_count):
            for attr, column in fields:
                raw = refine.get_column(column).get_string_data(row)
                try:
                    value = as_optional_float(raw)
                except ParseError as e:
                    logger.info(f"Could not parse _refine.{column}: {e}")
                    continue
                if value is None:
                    logger.debug(f"_refine.{column} not present, not setting {attr}")
                    continue
                previous = getattr(header, attr)
                if previous is not None:
                    logger.warning(
                        f"More than one {attr} value present, will use last one {raw} "
                        f"and discard previous {previous:4.2f}"
                    )
                setattr(header, attr, value)

    def consume_struct(self, struct: Category) -> None:
        self._check_consuming("struct")
        if struct.row_count == 0:
            return
        header = self.structure.header
        header.title = struct.get_column("title").get(0)
        header.id_code = struct.get_column("entry_id").get(0)

    def consume_struct_keywords(self, struct_keywords: Category) -> None:
        self._check_consuming("struct_keywords")
        keywords = [k for k in struct_keywords.get_column("pdbx_keywords") if k is not None]
        if not keywords:
            return
        joined = ", ".join(keywords)
        header = self.structure.header
        header.description = joined
        header.classification = joined

    def consume_symmetry(self, symmetry: Category) -> None:
        self._check_consuming("symmetry")
        crystal_info = self.structure.header.crystallographic_info
        symbols = symmetry.get_column("space_group_name_H-M")
        for row in range(symmetry.row_count):
            symbol = symbols.get(row)
            if symbol is None:
                continue
            space_group = self.space_groups.get(symbol)
            if space_group is None:
                logger.warning(f"Space group '{symbol}' not recognised as a standard space group")
                crystal_info.non_standard_sg = True
            else:
                crystal_info.space_group = space_group
                crystal_info.non_standard_sg = False

    @staticmethod
    def _parse_date(value: str, label: str):
        try:
            return as_optional_date(value)
        except ParseError:
            logger.warning(f"Could not parse date string '{value}', {label} date will be unavailable")
            return None

    # =========================================================================
    # Sequence, references and sites
    # =========================================================================

    def consume_entity_poly_seq(self, entity_poly_seq: Category) -> None:
        """Build one SEQRES chain per entity.

        Author numbering is not known yet: each group's residue number and
        internal id hold the 1-based ``num`` until alignment.
        """
        self._check_consuming("entity_poly_seq")
        entity_ids = entity_poly_seq.get_column("entity_id")
        mon_ids = entity_poly_seq.get_column("mon_id")
        nums = entity_poly_seq.get_column("num")
        for row in range(entity_poly_seq.row_count):
            num = self._int_or_none(nums, row, "entity_poly_seq.num")
            if num is None:
                continue
            group = self._new_seqres_group(mon_ids.get(row), num)
            group.residue_number = ResidueNumber(None, num, None)
            group.internal_seq_id = num
            self._get_entity_chain(entity_ids.get(row)).add_group(group)

    def _new_seqres_group(self, mon_id: Optional[str], num: int) -> Group:
        group = self.dictionary.get_group(mon_id) if mon_id is not None else None
        if group is None:
            one_letter_code = get_one_letter_code_amino(mon_id)
            if mon_id is not None and len(mon_id) == 3 and one_letter_code is not None:
                group = Group(group_type=GroupType.AMINOACID, one_letter_code=one_letter_code)
            elif is_nucleotide(mon_id):
                group = Group(group_type=GroupType.NUCLEOTIDE)
            else:
                logger.debug(f"Residue {num} {mon_id} is not a standard amino acid or nucleotide, using a het group")
                group = Group(group_type=GroupType.HETATM)
        group.pdb_name = mon_id
        return group

    def _get_entity_chain(self, entity_id: Optional[str]) -> Chain:
        chain = self._entity_chains.get(entity_id)
        if chain is None:
            chain = Chain(id=entity_id)
            self._entity_chains[entity_id] = chain
        return chain

    def consume_struct_ref_seq(self, struct_ref_seq: Category) -> None:
        """Create DBRefs, resolving ``ref_id`` against ``_struct_ref`` seen so far."""
        self._check_consuming("struct_ref_seq")
        struct_ref = self._deferred["struct_ref"]
        ref_ids = struct_ref.get_column("id")

        for row in range(struct_ref_seq.row_count):
            col = struct_ref_seq.get_column
            ref_id = col("ref_id").get(row)
            db_ref = DBRef(
                id_code=col("pdbx_PDB_id_code").get(row),
                db_accession=col("pdbx_db_accession").get(row),
                db_id_code=col("pdbx_db_accession").get(row),
                chain_name=col("pdbx_strand_id").get(row),
            )

            ref_row = next((i for i in range(struct_ref.row_count) if ref_ids.get(i) == ref_id), None)
            if ref_row is not None:
                db_ref.database = struct_ref.get_column("db_name").get(ref_row)
                db_ref.db_id_code = struct_ref.get_column("db_code").get(ref_row)
            else:
                logger.info(f"Could not find _struct_ref {ref_id} for _struct_ref_seq row {row + 1}")

            try:
                db_ref.seq_begin = as_optional_int(col("pdbx_auth_seq_align_beg").get_string_data(row))
                db_ref.seq_end = as_optional_int(col("pdbx_auth_seq_align_end").get_string_data(row))
            except ParseError as e:
                logger.warning(
                    f"Could not parse pdbx_auth_seq_align_beg/end in _struct_ref_seq; not storing "
                    f"the reference for accession {db_ref.db_accession}: {e}"
                )
                continue
            db_ref.ins_begin = _insertion_code_or_blank(col("pdbx_seq_align_beg_ins_code").get_string_data(row))
            db_ref.ins_end = _insertion_code_or_blank(col("pdbx_seq_align_end_ins_code").get_string_data(row))

            try:
                db_ref.db_seq_begin = as_optional_int(col("db_align_beg").get_string_data(row))
                db_ref.db_seq_end = as_optional_int(col("db_align_end").get_string_data(row))
            except ParseError as e:
                db_ref.db_seq_begin = None
                db_ref.db_seq_end = None
                logger.warning(f"Could not parse db_align_beg/end for accession {db_ref.db_accession}: {e}")
            db_ref.id_ins_begin = _insertion_code_or_blank(col("pdbx_db_align_beg_ins_code").get_string_data(row))
            db_ref.id_ins_end = _insertion_code_or_blank(col("pdbx_db_align_end_ins_code").get_string_data(row))

            self.structure.db_refs.append(db_ref)

    def consume_struct_site(self, struct_site: Category) -> None:
        """Create sites; a repeated id updates the existing site."""
        self._check_consuming("struct_site")
        if self.config.header_only:
            return

        for row in range(struct_site.row_count):
            site_id = struct_site.get_column("id").get(row) or ""
            site = self._get_site(site_id)
            if site is None:
                site = Site(site_id=site_id)
                self.structure.sites.append(site)
            site.description = struct_site.get_column("details").get(row)
            site.ev_code = struct_site.get_column("pdbx_evidence_code").get(row)

    def _get_site(self, site_id: str) -> Optional[Site]:
        for site in self.structure.sites:
            if site.site_id == site_id:
                return site
        return None

    # =========================================================================
    # Finish
    # =========================================================================

    def finish(self) -> Structure:
        """Link everything consumed so far and return the Structure.

        Raises:
            ConsumerStateError: If called before ``prepare`` or twice
        """
        if self._state == _NEW:
            raise ConsumerStateError("prepare() must be called before finish()")
        if self._state == _FINISHED:
            raise ConsumerStateError("finish() was already called")
        self._state = _FINISHED

        if self._current_chain is not None:
            self._flush_group()
        elif not self.config.header_only:
            logger.warning("No atom records were found at the end of the document")
        self._all_models.append(self._current_model)

        self._init_maps()

        struct_asym = self._deferred["struct_asym"]
        for row in range(struct_asym.row_count):
            asym_id = struct_asym.get_column("id").get(row)
            entity_id = struct_asym.get_column("entity_id").get(row)
            logger.debug(f"Entity {entity_id} matches asym_id {asym_id}")

            seqres = remove_seqres_heterogeneity(self._get_entity_chain(entity_id).copy_as_seqres())
            seqres.id = asym_id
            seqres.name = self._asym_id_to_author_id.get(asym_id, asym_id)

            entity_type = EntityType.from_string(self._get_entity_value(entity_id, "type"))
            if entity_type is None or entity_type == EntityType.POLYMER:
                self._seqres_chains.append(seqres)

            self._add_entity(entity_id)

        if not struct_asym.is_defined() or struct_asym.row_count == 0:
            logger.warning("No _struct_asym category in file, no SEQRES groups will be added")

        self._link_entities()

        for chains in self._all_models:
            self.structure.add_model(chains)

        if self.config.align_seqres and not self.config.header_only:
            logger.debug("Aligning SEQRES to the observed residues")
            align_seqres(self.structure, self._seqres_chains)
        else:
            logger.debug("Storing SEQRES without aligning it to the observed residues")
            store_unaligned_seqres(self.structure, self._seqres_chains, self.config.header_only)
            if self.config.header_only:
                self._link_chains(self.structure.get_chains())

        clean_up_alt_locs(self.structure)

        if not self.config.header_only:
            if self.config.create_atom_bonds:
                self._add_bonds()
            if self.config.create_atom_charges:
                ChargeAdder.add_charges(self.structure)
            self._add_sites()

        if self.config.parse_bioassembly:
            self._add_bio_assemblies()

        self._set_ncs_operators()
        self._set_crystallographic_metadata()
        self._add_seq_mismatches()

        return self.structure

    def _init_maps(self) -> None:
        """Build asym id -> entity id and asym id -> author chain id."""
        struct_asym = self._deferred["struct_asym"]
        if not struct_asym.is_defined() or struct_asym.row_count == 0:
            logger.info("No _struct_asym category found; no asym id to entity id mapping will be available")
            return

        entity_id_to_asym_ids: Dict[str, List[str]] = {}
        for row in range(struct_asym.row_count):
            asym_id = struct_asym.get_column("id").get(row)
            entity_id = struct_asym.get_column("entity_id").get(row)
            self._asym_id_to_entity_id[asym_id] = entity_id
            entity_id_to_asym_ids.setdefault(entity_id, []).append(asym_id)

        entity_poly = self._deferred["entity_poly"]
        if not entity_poly.is_defined() or entity_poly.row_count == 0:
            logger.info("No _entity_poly category found; no asym id to author id mapping will be available")
            return

        strand_ids = entity_poly.get_column("pdbx_strand_id")
        if not strand_ids.is_defined():
            logger.info("_entity_poly.pdbx_strand_id is missing; cannot map asym ids to author ids")
            return

        for row in range(entity_poly.row_count):
            entity_id = entity_poly.get_column("entity_id").get(row)
            strands = strand_ids.get(row)
            if strands is None:
                logger.info(f"_entity_poly.pdbx_strand_id is empty for entity {entity_id}")
                continue
            author_ids = [name.strip() for name in strands.split(",")]
            asym_ids = entity_id_to_asym_ids.get(entity_id, [])
            if len(author_ids) != len(asym_ids):
                logger.warning(
                    f"The asym ids (from _struct_asym) and author ids (from _entity_poly) of entity "
                    f"{entity_id} have different lengths; cannot map asym ids to author chain ids"
                )
                continue
            self._asym_id_to_author_id.update(zip(asym_ids, author_ids))

    def _get_entity_row(self, entity_id: Optional[str]) -> Optional[int]:
        entity = self._deferred["entity"]
        ids = entity.get_column("id")
        for row in range(entity.row_count):
            if ids.get(row) == entity_id:
                return row
        return None

    def _get_entity_value(self, entity_id: Optional[str], column: str) -> Optional[str]:
        row = self._get_entity_row(entity_id)
        if row is None:
            return None
        return self._deferred["entity"].get_column(column).get(row)

    @staticmethod
    def _mol_id(entity_id: Optional[str]) -> int:
        """Numeric entity id; ids that are not integers map to 0."""
        try:
            mol_id = as_optional_int(entity_id)
        except ParseError:
            mol_id = None
        if mol_id is None:
            logger.warning(f"Could not parse mol_id from string {entity_id}. Will use 0 for creating Entity")
            return 0
        return mol_id

    def _add_entity(self, entity_id: Optional[str]) -> None:
        """Create the EntityInfo for an ``_entity`` row, once per entity."""
        mol_id = self._mol_id(entity_id)

        if self.structure.get_entity_by_id(mol_id) is not None:
            return
        row = self._get_entity_row(entity_id)
        if row is None:
            return

        entity = self._deferred["entity"]
        type_text = entity.get_column("type").get(row)
        entity_info = EntityInfo(
            mol_id=mol_id,
            description=entity.get_column("pdbx_description").get(row),
            type=EntityType.from_string(type_text),
        )
        if entity_info.type is None:
            logger.warning(f"Type '{type_text}' is not a valid entity type for entity {mol_id}")
        self._add_ancillary_entity_data(entity_id, entity_info)
        self.structure.entity_infos.append(entity_info)
        logger.debug(f"Adding entity {mol_id} from _entity: {entity_info.description}")

    def _add_ancillary_entity_data(self, entity_id: Optional[str], entity_info: EntityInfo) -> None:
        """Copy source organism and expression data from rows of the same entity."""
        sources = (
            ("entity_src_gen", {
                "atcc": "pdbx_gene_src_atcc",
                "cell": "pdbx_gene_src_cell",
                "organism_common": "gene_src_common_name",
                "organism_scientific": "pdbx_gene_src_scientific_name",
                "organism_taxid": "pdbx_gene_src_ncbi_taxonomy_id",
                "expression_system_taxid": "pdbx_host_org_ncbi_taxonomy_id",
                "expression_system": "pdbx_host_org_scientific_name",
            }),
            ("entity_src_nat", {
                "atcc": "pdbx_atcc",
                "cell": "pdbx_cell",
                "organism_common": "common_name",
                "organism_scientific": "pdbx_organism_scientific",
                "organism_taxid": "pdbx_ncbi_taxonomy_id",
            }),
            ("pdbx_entity_src_syn", {
                "organism_common": "organism_common_name",
                "organism_scientific": "organism_scientific",
                "organism_taxid": "ncbi_taxonomy_id",
            }),
        )
        for name, columns in sources:
            category = self._deferred[name]
            ids = category.get_column("entity_id")
            for row in range(category.row_count):
                if ids.get(row) != entity_id:
                    continue
                for attr, column in columns.items():
                    value = category.get_column(column).get(row)
                    if value is not None:
                        setattr(entity_info, attr, value)

    def _link_entities(self) -> None:
        """Attach every chain to an entity, inventing entities where needed."""
        for chains in self._all_models:
            self._link_chains(chains)

        if not self.structure.entity_infos:
            # No entity categories in the file: group chains by content
            poly_models, non_poly_models, water_models = [], [], []
            for chains in self._all_models:
                poly_models.append([c for c in chains if not c.is_water_only() and not c.is_pure_non_polymer()])
                non_poly_models.append([c for c in chains if c.is_pure_non_polymer()])
                water_models.append([c for c in chains if c.is_water_only()])

            entity_infos = find_poly_entities(poly_models)
            create_purely_non_poly_entities(non_poly_models, water_models, entity_infos)
            self.structure.entity_infos = entity_infos

        for entity_info in self.structure.entity_infos:
            if not entity_info.chains:
                logger.info(
                    f"Entity {entity_info.mol_id} '{entity_info.description}' has no chains associated to it"
                )

    def _link_chains(self, chains: List[Chain]) -> None:
        for chain in chains:
            entity_id = self._asym_id_to_entity_id.get(chain.id)
            if entity_id is None:
                logger.info(f"No entity id could be found for chain {chain.id}")
                continue
            mol_id = self._mol_id(entity_id)

            entity_info = self.structure.get_entity_by_id(mol_id)
            if entity_info is None:
                logger.info(
                    f"Could not find an entity for entity_id {mol_id} (chain {chain.id}), creating a new one"
                )
                entity_info = EntityInfo(
                    mol_id=mol_id,
                    type=EntityType.WATER if chain.is_water_only() else EntityType.NONPOLYMER,
                )
                self.structure.entity_infos.append(entity_info)
            entity_info.add_chain(chain)

    def _add_bonds(self) -> None:
        maker = BondMaker(self.structure, self.config.bonding)
        maker.make_bonds()
        maker.form_bonds_from_struct_conn(self._deferred["struct_conn"])

    def _add_sites(self) -> None:
        """Attach the residues listed in ``_struct_site_gen`` to their sites."""
        site_gen = self._deferred["struct_site_gen"]
        col = site_gen.get_column
        for row in range(site_gen.row_count):
            site_id = col("site_id").get(row) or ""
            comp_id = col("label_comp_id").get(row)
            asym_id = col("label_asym_id").get(row)
            auth_id = col("auth_asym_id").get(row)
            seq_text = col("auth_seq_id").get_string_data(row)

            try:
                seq_num = as_optional_int(seq_text)
            except ParseError:
                logger.warning(f"Could not look up residue {auth_id}{seq_text} for site {site_id}")
                continue
            chain = self.structure.get_chain_by_id(asym_id) if asym_id is not None else None
            if chain is None or seq_num is None:
                continue
            ins_code = as_optional_char(col("pdbx_auth_ins_code").get_string_data(row))
            group = chain.get_group_by_pdb(ResidueNumber(None, seq_num, ins_code))
            if group is None:
                continue

            if comp_id != group.pdb_name:
                logger.warning(f"comp_id doesn't match the residue at {auth_id} {seq_text} - skipping")
                continue
            site = self._get_site(site_id)
            if site is None:
                site = Site(site_id=site_id)
                self.structure.sites.append(site)
            site.add_group(group)

    def _add_bio_assemblies(self) -> None:
        struct_assembly = self._deferred["pdbx_struct_assembly"]
        assembly_gen = self._deferred["pdbx_struct_assembly_gen"]
        operators = parse_operators(self._deferred["pdbx_struct_oper_list"])

        assembly_gens = [
            {
                "assembly_id": assembly_gen.get_column("assembly_id").get(row),
                "oper_expression": assembly_gen.get_column("oper_expression").get(row),
                "asym_id_list": assembly_gen.get_column("asym_id_list").get(row),
            }
            for row in range(assembly_gen.row_count)
        ]

        bio_assemblies: Dict[int, BioAssemblyInfo] = {}
        for row in range(struct_assembly.row_count):
            assembly_id = struct_assembly.get_column("id").get(row)
            transformations = self.assembly_builder.get_bio_unit_transformation_list(
                assembly_id, assembly_gens, operators
            )

            try:
                numeric_id = as_optional_int(assembly_id)
            except ParseError:
                numeric_id = None
            if numeric_id is None:
                # Viral capsid entries use ids like 'PAU'
                logger.info(f"Could not parse a numerical bio assembly id from '{assembly_id}'")
                continue

            size = 0
            for transformation in transformations:
                chain = self.structure.get_chain_by_id(transformation.chain_id)
                if chain is None:
                    logger.info(
                        f"Could not find asym id {transformation.chain_id} specified in struct_assembly_gen"
                    )
                    continue
                description = chain.entity_info.description if chain.entity_info is not None else None
                if chain.entity_type == EntityType.POLYMER and SUGAR_DESCRIPTION not in (description or ""):
                    size += 1

            bio_assemblies[numeric_id] = BioAssemblyInfo(
                id=numeric_id,
                macromolecular_size=size,
                transforms=transformations,
            )
        self.structure.header.bio_assemblies = bio_assemblies

    def _set_ncs_operators(self) -> None:
        """Collect the 'generate' operators of ``_struct_ncs_oper`` as 4x4 matrices."""
        ncs_oper = self._deferred["struct_ncs_oper"]
        operators: List[np.ndarray] = []
        for row in range(ncs_oper.row_count):
            if ncs_oper.get_column("code").get(row) != NCS_GENERATE_CODE:
                continue
            try:
                operator = _read_transform(ncs_oper, row, "matrix", "vector")
            except ParseError:
                operator = None
            if operator is None:
                logger.warning(f"Error parsing doubles in NCS operator list, skipping operator {row + 1}")
                continue
            operators.append(operator)

        if operators:
            self.structure.header.crystallographic_info.ncs_operators = operators

    def _set_crystallographic_metadata(self) -> None:
        if self._parsed_scale_matrix is None:
            return
        crystal_info = self.structure.header.crystallographic_info
        cell = crystal_info.crystal_cell
        crystal_info.non_standard_coord_frame_convention = (
            cell is not None and not cell.check_scale_matrix(self._parsed_scale_matrix)
        )

    def _add_seq_mismatches(self) -> None:
        """Attach ``_struct_ref_seq_dif`` rows to polymer chains by author chain id."""
        seq_dif = self._deferred["struct_ref_seq_dif"]
        col = seq_dif.get_column
        by_strand: Dict[Optional[str], List[SeqMismatch]] = {}
        for row in range(seq_dif.row_count):
            try:
                seq_num = as_optional_int(col("seq_num").get_string_data(row))
            except ParseError as e:
                logger.warning(f"Skipping _struct_ref_seq_dif row {row + 1}: {e}")
                continue
            mismatch = SeqMismatch(
                details=col("details").get(row),
                ins_code=col("pdbx_pdb_ins_code").get(row),
                orig_group=col("db_mon_id").get(row),
                pdb_group=col("mon_id").get(row),
                pdb_res_num=col("pdbx_auth_seq_num").get(row),
                db_accession=col("pdbx_seq_db_accession_code").get(row),
                seq_num=seq_num,
            )
            by_strand.setdefault(col("pdbx_pdb_strand_id").get(row), []).append(mismatch)

        for strand_id, mismatches in by_strand.items():
            chain = self.structure.get_poly_chain_by_pdb(strand_id) if strand_id is not None else None
            if chain is None:
                logger.warning(f"Could not set mismatches for chain with author id {strand_id}")
                continue
            chain.seq_mismatches = mismatches
