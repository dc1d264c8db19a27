"""Tests for the post-processing steps: bonds, charges, alt-locs, entities, SEQRES."""

import numpy as np
import pytest


def _group(name, atoms, residue=1, chem_comp=True):
    """Build a standalone group with atoms given as (name, coords) pairs."""
    from cifstream.data.parsers.chemcomp import get_default_monomer_dictionary
    from cifstream.data.parsers.structure import Atom, Group, ResidueNumber

    group = get_default_monomer_dictionary().get_group(name) if chem_comp else None
    if group is None:
        group = Group(pdb_name=name)
    group.residue_number = ResidueNumber("A", residue, None)
    group.internal_seq_id = residue
    for atom_name, coords in atoms:
        group.add_atom(Atom(name=atom_name, coords=np.array(coords, dtype=np.float64)))
    return group


def _structure(*chains):
    from cifstream.data.parsers.structure import Structure

    structure = Structure()
    structure.add_model(list(chains))
    return structure


def _chain(chain_id, *groups):
    from cifstream.data.parsers.structure import Chain

    chain = Chain(id=chain_id, name=chain_id)
    for group in groups:
        chain.add_group(group)
    return chain


# =============================================================================
# Bond Tests
# =============================================================================

class TestBondMaker:
    """Tests for BondMaker."""

    def test_intra_residue_bonds(self):
        from cifstream.processing.bonds import BondMaker

        ala = _group("ALA", [("N", (0, 0, 0)), ("CA", (1.46, 0, 0)), ("C", (2.0, 1.4, 0)),
                             ("O", (1.2, 2.4, 0)), ("CB", (2.0, -0.7, -1.2))])
        structure = _structure(_chain("A", ala))

        count = BondMaker(structure).make_bonds()

        assert count == 4
        pairs = {frozenset((b.atom_a.name, b.atom_b.name)) for b in structure.bonds}
        assert pairs == {frozenset(p) for p in [("N", "CA"), ("CA", "C"), ("C", "O"), ("CA", "CB")]}
        assert len(ala.get_atom("CA").bonds) == 3

    def test_peptide_bond_distance_cutoff(self):
        from cifstream.config import BondingConfig
        from cifstream.processing.bonds import BondMaker

        first = _group("GLY", [("C", (0, 0, 0))], residue=1)
        second = _group("GLY", [("N", (1.5, 0, 0))], residue=2)
        far = _group("GLY", [("N", (10.0, 0, 0)), ("C", (11.0, 0, 0))], residue=3)
        structure = _structure(_chain("A", first, second, far))

        assert BondMaker(structure).make_bonds() == 1
        assert structure.bonds[0].kind == "polymer"

        strict = _structure(_chain("B", *[g.clone() for g in (first, second)]))
        assert BondMaker(strict, BondingConfig(max_peptide_bond_length=1.2)).make_bonds() == 0

    def test_nucleotide_link(self):
        from cifstream.processing.bonds import BondMaker

        first = _group("DA", [("O3'", (0, 0, 0))], residue=1)
        second = _group("DC", [("P", (1.6, 0, 0))], residue=2)
        structure = _structure(_chain("A", first, second))

        BondMaker(structure).make_bonds()

        assert [(b.atom_a.name, b.atom_b.name) for b in structure.bonds] == [("O3'", "P")]

    def test_no_duplicate_bonds(self):
        from cifstream.processing.bonds import BondMaker

        gly = _group("GLY", [("N", (0, 0, 0)), ("CA", (1.46, 0, 0))])
        structure = _structure(_chain("A", gly))
        maker = BondMaker(structure)

        assert maker.make_bonds() == 1
        assert maker.make_bonds() == 0
        assert maker.add_bond(gly.atoms[1], gly.atoms[0]) is None
        assert maker.add_bond(gly.atoms[0], gly.atoms[0]) is None
        assert len(structure.bonds) == 1

    def test_struct_conn(self, category):
        from cifstream.processing.bonds import BondMaker

        cys1 = _group("CYS", [("SG", (0, 0, 0))], residue=3)
        cys2 = _group("CYS", [("SG", (2.05, 0, 0))], residue=40)
        structure = _structure(_chain("A", cys1, cys2))
        conn = {
            "conn_type_id": "disulf",
            "ptnr1_label_asym_id": "A", "ptnr1_label_comp_id": "CYS", "ptnr1_label_atom_id": "SG",
            "ptnr1_auth_seq_id": "3", "ptnr1_symmetry": "1_555",
            "ptnr2_label_asym_id": "A", "ptnr2_label_comp_id": "CYS", "ptnr2_label_atom_id": "SG",
            "ptnr2_auth_seq_id": "40", "ptnr2_symmetry": "1_555",
            "pdbx_value_order": "sing",
        }

        count = BondMaker(structure).form_bonds_from_struct_conn(category(
            "struct_conn",
            conn,
            {**conn, "ptnr2_symmetry": "2_655"},
            {**conn, "conn_type_id": "hydrog"},
            {**conn, "ptnr2_label_comp_id": "SER"},
        ))

        assert count == 1
        bond = structure.bonds[0]
        assert bond.kind == "disulf"
        assert bond.order == 1
        assert bond.get_other(cys1.atoms[0]) is cys2.atoms[0]

    def test_struct_conn_bond_order(self, category):
        from cifstream.processing.bonds import BondMaker

        ligand = _group("LIG", [("C1", (0, 0, 0)), ("C2", (1.3, 0, 0))], chem_comp=False)
        structure = _structure(_chain("B", ligand))

        BondMaker(structure).form_bonds_from_struct_conn(category("struct_conn", {
            "conn_type_id": "covale",
            "ptnr1_label_asym_id": "B", "ptnr1_label_atom_id": "C1", "ptnr1_auth_seq_id": "1",
            "ptnr2_label_asym_id": "B", "ptnr2_label_atom_id": "C2", "ptnr2_auth_seq_id": "1",
            "pdbx_value_order": "doub",
        }))

        assert structure.bonds[0].order == 2

    def test_struct_conn_alt_loc_partner(self, category):
        from cifstream.data.parsers.structure import Atom
        from cifstream.processing.bonds import BondMaker

        ser = _group("SER", [("OG", (0, 0, 0))], residue=5)
        ser.atoms[0].alt_loc = "A"
        alt = ser.copy_without_atoms()
        alt.add_atom(Atom(name="OG", coords=np.array([0.5, 0, 0]), alt_loc="B"))
        ser.add_alt_loc(alt)
        zn = _group("ZN", [("ZN", (2.0, 0, 0))], residue=101)
        structure = _structure(_chain("A", ser), _chain("B", zn))

        BondMaker(structure).form_bonds_from_struct_conn(category("struct_conn", {
            "conn_type_id": "metalc",
            "ptnr1_label_asym_id": "A", "ptnr1_label_comp_id": "SER", "ptnr1_label_atom_id": "OG",
            "ptnr1_auth_seq_id": "5", "pdbx_ptnr1_label_alt_id": "B",
            "ptnr2_label_asym_id": "B", "ptnr2_label_comp_id": "ZN", "ptnr2_label_atom_id": "ZN",
            "ptnr2_auth_seq_id": "101",
        }))

        assert structure.bonds[0].atom_a is alt.atoms[0]


# =============================================================================
# Charge Tests
# =============================================================================

class TestChargeAdder:
    """Tests for ChargeAdder."""

    def test_add_charges(self):
        from cifstream.processing.charges import ChargeAdder

        arg = _group("ARG", [("CZ", (0, 0, 0)), ("NH1", (1.3, 0, 0)), ("NH2", (0, 1.3, 0))])
        ligand = _group("LIG", [("C1", (5, 5, 5))], chem_comp=False)
        ligand.atoms[0].charge = -1
        structure = _structure(_chain("A", arg), _chain("B", ligand))

        assert ChargeAdder.add_charges(structure) == 1
        assert [a.charge for a in arg.atoms] == [0, 0, 1]
        assert ligand.atoms[0].charge == -1

    def test_alt_loc_groups_charged(self):
        from cifstream.processing.charges import ChargeAdder

        lys = _group("LYS", [("NZ", (0, 0, 0))])
        alt = lys.copy_without_atoms()
        alt.add_atom(lys.atoms[0].copy())
        lys.add_alt_loc(alt)

        assert ChargeAdder.add_charges(_structure(_chain("A", lys))) == 2
        assert alt.atoms[0].charge == 1


# =============================================================================
# Structure Tool Tests
# =============================================================================

class TestStructureTools:
    """Tests for alt-loc clean-up and deuterium handling."""

    def test_clean_up_alt_locs(self):
        from cifstream.processing.structure_tools import clean_up_alt_locs

        group = _group("SER", [("N", (0, 0, 0)), ("CA", (1.4, 0, 0)), ("OG", (2, 1, 0))])
        group.atoms[2].alt_loc = "A"
        alt = group.copy_without_atoms()
        alt.add_atom(group.atoms[2].copy())
        alt.atoms[0].alt_loc = "B"
        group.add_alt_loc(alt)

        added = clean_up_alt_locs(_structure(_chain("A", group)))

        assert added == 2
        assert [a.name for a in alt.atoms] == ["OG", "N", "CA"]
        assert alt.get_atom("N") is not group.get_atom("N")
        assert alt.get_atom("N").group is alt
        assert clean_up_alt_locs(_structure(_chain("A", group))) == 0

    def test_has_non_deuterated_equiv(self):
        from cifstream.constants.elements import Element
        from cifstream.data.parsers.structure import Atom
        from cifstream.processing.structure_tools import has_non_deuterated_equiv

        group = _group("SER", [("HG", (0, 0, 0))])
        deuterium = Atom(name="DG", coords=np.zeros(3), element=Element.D)
        lone = Atom(name="DB2", coords=np.zeros(3), element=Element.D)
        hydrogen = Atom(name="DG", coords=np.zeros(3), element=Element.H)

        assert has_non_deuterated_equiv(deuterium, group)
        assert not has_non_deuterated_equiv(lone, group)
        assert not has_non_deuterated_equiv(hydrogen, group)


# =============================================================================
# Entity Finder Tests
# =============================================================================

class TestEntityFinder:
    """Tests for content-based entity assignment."""

    def _polymer(self, chain_id, codes):
        from cifstream.data.parsers.structure import Group, GroupType

        groups = [
            Group(group_type=GroupType.AMINOACID, pdb_name=name, one_letter_code=code)
            for name, code in codes
        ]
        return _chain(chain_id, *groups)

    def test_identical_sequences_share_entity(self):
        from cifstream.processing.entities import find_poly_entities

        a = self._polymer("A", [("GLY", "G"), ("ALA", "A")])
        b = self._polymer("B", [("GLY", "G"), ("ALA", "A")])
        c = self._polymer("C", [("TRP", "W")])

        entities = find_poly_entities([[a, b, c]])

        assert [e.mol_id for e in entities] == [1, 2]
        assert entities[0].get_chain_ids() == ["A", "B"]
        assert c.entity_info is entities[1]

    def test_empty_input(self):
        from cifstream.processing.entities import find_poly_entities

        assert find_poly_entities([]) == []

    def test_non_polymer_and_water_entities(self):
        from cifstream.data.parsers.structure import EntityInfo, EntityType, Group
        from cifstream.processing.entities import create_purely_non_poly_entities

        hem1 = _chain("C", Group(pdb_name="HEM"))
        hem2 = _chain("D", Group(pdb_name="HEM"))
        sulfate = _chain("E", Group(pdb_name="SO4"))
        water = _chain("F", Group(pdb_name="HOH"))
        entities = [EntityInfo(mol_id=1, type=EntityType.POLYMER)]

        create_purely_non_poly_entities([[hem1, hem2, sulfate]], [[water]], entities)

        assert [(e.mol_id, e.type) for e in entities] == [
            (1, EntityType.POLYMER),
            (2, EntityType.NONPOLYMER),
            (3, EntityType.NONPOLYMER),
            (4, EntityType.WATER),
        ]
        assert entities[1].get_chain_ids() == ["C", "D"]
        assert entities[2].description == "SO4"
        assert water.entity_info is entities[3]


# =============================================================================
# SEQRES Tests
# =============================================================================

class TestSeqresTools:
    """Tests for SEQRES helpers."""

    def test_remove_seqres_heterogeneity(self):
        from cifstream.data.parsers.structure import Group, ResidueNumber
        from cifstream.processing.seqres import remove_seqres_heterogeneity

        groups = [
            Group(pdb_name=name, residue_number=ResidueNumber(None, num, None))
            for name, num in [("GLY", 1), ("SER", 2), ("THR", 2), ("ALA", 3)]
        ]
        chain = _chain("A", *groups)

        trimmed = remove_seqres_heterogeneity(chain)

        assert [g.pdb_name for g in trimmed.groups] == ["GLY", "SER", "ALA"]
        assert trimmed is not chain
        assert len(chain.groups) == 4

    def test_get_matching_atom_res(self):
        from cifstream.data.parsers.structure import Chain
        from cifstream.processing.seqres import get_matching_atom_res

        atom_chains = [Chain(id="A", name="H"), Chain(id="B", name="L")]
        seqres = Chain(id="B", name="H")

        assert get_matching_atom_res(seqres, atom_chains, True) is atom_chains[1]
        assert get_matching_atom_res(seqres, atom_chains, False) is atom_chains[0]
        assert get_matching_atom_res(Chain(id="Z", name="Z"), atom_chains, True) is None

    def test_align_seqres_per_model(self):
        from cifstream.data.parsers.structure import Chain, Group, ResidueNumber
        from cifstream.processing.seqres import align_seqres

        seqres = Chain(id="A", name="A")
        for num, name in enumerate(["MET", "GLY"], start=1):
            seqres.add_group(Group(pdb_name=name, internal_seq_id=num,
                                   residue_number=ResidueNumber(None, num, None)))
        model1 = _chain("A", _group("GLY", [("CA", (0, 0, 0))], residue=2))
        model2 = _chain("A", _group("GLY", [("CA", (1, 0, 0))], residue=2))
        structure = _structure(model1)
        structure.add_model([model2])

        align_seqres(structure, [seqres])

        assert model1.seqres_groups[1] is model1.groups[0]
        assert model2.seqres_groups[1] is model2.groups[0]
        assert model1.seqres_groups[0] is not model2.seqres_groups[0]
        assert model1.seqres_groups[0].residue_number is None
        assert seqres.groups[0].residue_number is not None
