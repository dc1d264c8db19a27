"""Bond creation for a finished structure.

Bonds come from three sources:
- Intra-residue bonds listed by the group's chemical component
- Peptide and phosphodiester links between consecutive polymer groups,
  accepted when the linking atoms are close enough
- Explicit connections in ``_struct_conn`` (hydrogen bonds excluded)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from cifstream.config import BondingConfig
from cifstream.constants.bonds import PEPTIDE_BOND_ATOMS, PHOSPHODIESTER_BOND_ATOMS
from cifstream.data.parsers.category import Category
from cifstream.data.parsers.structure import Atom, Bond, Chain, Group, GroupType, ResidueNumber, Structure
from cifstream.data.parsers.values import ParseError, as_optional_int

logger = logging.getLogger(__name__)

# Connection types in _struct_conn that are not covalent
NON_COVALENT_CONN_TYPES = frozenset(["hydrog"])

# Identity symmetry operator; partners in other copies are not bonded
IDENTITY_SYMMETRY = "1_555"

BOND_ORDERS: Dict[str, int] = {"sing": 1, "doub": 2, "trip": 3, "quad": 4}


class BondMaker:
    """Creates bonds on a structure and records them on atoms and structure."""

    def __init__(self, structure: Structure, config: Optional[BondingConfig] = None):
        self.structure = structure
        self.config = config or BondingConfig()

    def make_bonds(self) -> int:
        """Create intra-residue and polymer-link bonds for every model.

        Returns:
            Number of bonds created
        """
        count = 0
        for model in self.structure.models:
            for chain in model.chains:
                for group in chain.groups:
                    count += self._form_intra_residue_bonds(group)
                    for alt in group.alt_locs:
                        count += self._form_intra_residue_bonds(alt)
                count += self._form_polymer_bonds(chain)
        logger.debug("Created %d intra-residue and polymer bonds", count)
        return count

    def _form_intra_residue_bonds(self, group: Group) -> int:
        if group.chem_comp is None:
            return 0
        count = 0
        for name_a, name_b in group.chem_comp.bonds:
            atom_a = group.get_atom(name_a)
            atom_b = group.get_atom(name_b)
            if atom_a is None or atom_b is None:
                continue
            if self.add_bond(atom_a, atom_b) is not None:
                count += 1
        return count

    def _form_polymer_bonds(self, chain: Chain) -> int:
        count = 0
        for previous, current in zip(chain.groups, chain.groups[1:]):
            if previous.group_type != current.group_type:
                continue
            if current.group_type == GroupType.AMINOACID:
                names = PEPTIDE_BOND_ATOMS
                max_length = self.config.max_peptide_bond_length
            elif current.group_type == GroupType.NUCLEOTIDE:
                names = PHOSPHODIESTER_BOND_ATOMS
                max_length = self.config.max_nucleotide_bond_length
            else:
                continue
            atom_a = previous.get_atom(names[0])
            atom_b = current.get_atom(names[1])
            if atom_a is None or atom_b is None:
                continue
            if atom_a.distance_to(atom_b) > max_length:
                continue
            if self.add_bond(atom_a, atom_b, kind="polymer") is not None:
                count += 1
        return count

    def form_bonds_from_struct_conn(self, struct_conn: Category) -> int:
        """Create bonds listed in ``_struct_conn``.

        Returns:
            Number of bonds created
        """
        count = 0
        conn_type = struct_conn.get_column("conn_type_id")
        order_col = struct_conn.get_column("pdbx_value_order")
        for row in range(struct_conn.row_count):
            kind = conn_type.get(row)
            if kind is not None and kind.lower() in NON_COVALENT_CONN_TYPES:
                continue

            symmetries = (
                struct_conn.get_column("ptnr1_symmetry").get(row),
                struct_conn.get_column("ptnr2_symmetry").get(row),
            )
            if any(sym is not None and sym != IDENTITY_SYMMETRY for sym in symmetries):
                logger.debug("Skipping struct_conn row %d between symmetry copies %s", row, symmetries)
                continue

            order_text = order_col.get(row)
            order = BOND_ORDERS.get(order_text.lower(), 1) if order_text else 1

            for model in self.structure.models:
                atom_a = self._find_partner_atom(struct_conn, row, 1, model.chains)
                atom_b = self._find_partner_atom(struct_conn, row, 2, model.chains)
                if atom_a is None or atom_b is None:
                    continue
                if self.add_bond(atom_a, atom_b, order=order, kind=kind or "covale") is not None:
                    count += 1
        logger.debug("Created %d bonds from _struct_conn", count)
        return count

    def _find_partner_atom(
        self,
        struct_conn: Category,
        row: int,
        partner: int,
        chains: List[Chain],
    ) -> Optional[Atom]:
        prefix = f"ptnr{partner}_"
        asym_id = struct_conn.get_column(prefix + "label_asym_id").get(row)
        comp_id = struct_conn.get_column(prefix + "label_comp_id").get(row)
        atom_name = struct_conn.get_column(prefix + "label_atom_id").get(row)
        alt_id = struct_conn.get_column(f"pdbx_ptnr{partner}_label_alt_id").get(row)
        ins_code = struct_conn.get_column(f"pdbx_ptnr{partner}_PDB_ins_code").get(row)
        try:
            seq_num = as_optional_int(struct_conn.get_column(prefix + "auth_seq_id").get_string_data(row))
        except ParseError as e:
            logger.warning("Cannot resolve struct_conn partner %d in row %d: %s", partner, row, e)
            return None
        if asym_id is None or atom_name is None or seq_num is None:
            return None

        chain = next((c for c in chains if c.id == asym_id), None)
        if chain is None:
            return None
        group = chain.get_group_by_pdb(ResidueNumber(None, seq_num, ins_code))
        if group is None:
            return None
        if comp_id is not None and group.pdb_name != comp_id:
            logger.warning(
                "struct_conn row %d names %s but residue %s is %s",
                row, comp_id, group.residue_number, group.pdb_name,
            )
            return None
        if alt_id is not None:
            alt_group = group.get_alt_loc_group(alt_id)
            if alt_group is not None:
                group = alt_group
        return group.get_atom(atom_name)

    def add_bond(self, atom_a: Atom, atom_b: Atom, order: int = 1, kind: str = "covale") -> Optional[Bond]:
        """Bond two atoms unless they are already bonded to each other."""
        if atom_a is atom_b:
            return None
        for bond in atom_a.bonds:
            if bond.get_other(atom_a) is atom_b:
                return None
        bond = Bond(atom_a, atom_b, order=order, kind=kind)
        atom_a.bonds.append(bond)
        atom_b.bonds.append(bond)
        self.structure.bonds.append(bond)
        return bond
