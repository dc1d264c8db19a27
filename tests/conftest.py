"""Pytest configuration and fixtures for cifstream tests."""

from __future__ import annotations

import io
import tempfile
from pathlib import Path
from typing import Dict, Generator

import numpy as np
import pytest


# =============================================================================
# Test Data Fixtures
# =============================================================================

# One glycine alpha carbon at the origin
ATOM_SITE_DEFAULTS: Dict[str, str] = {
    "group_PDB": "ATOM",
    "id": "1",
    "type_symbol": "C",
    "label_atom_id": "CA",
    "label_alt_id": ".",
    "label_comp_id": "GLY",
    "label_asym_id": "A",
    "label_entity_id": "1",
    "label_seq_id": "1",
    "pdbx_PDB_ins_code": "?",
    "Cartn_x": "0.000",
    "Cartn_y": "0.000",
    "Cartn_z": "0.000",
    "occupancy": "1.00",
    "B_iso_or_equiv": "10.00",
    "auth_seq_id": "1",
    "auth_asym_id": "A",
    "pdbx_PDB_model_num": "1",
}


SAMPLE_MMCIF = """data_1ABC
#
_entry.id   1ABC
#
_struct.entry_id          1ABC
_struct.title             'Test protein with ligand'
#
_struct_keywords.entry_id        1ABC
_struct_keywords.pdbx_keywords   HYDROLASE
_struct_keywords.text            'HYDROLASE, ZINC'
#
_exptl.entry_id    1ABC
_exptl.method      'X-RAY DIFFRACTION'
#
loop_
_audit_author.name
_audit_author.pdbx_ordinal
'Smith, J.A.' 1
'Doe, J.'     2
#
_pdbx_database_status.entry_id                       1ABC
_pdbx_database_status.recvd_initial_deposition_date  2019-03-04
#
loop_
_pdbx_audit_revision_history.ordinal
_pdbx_audit_revision_history.data_content_type
_pdbx_audit_revision_history.major_revision
_pdbx_audit_revision_history.minor_revision
_pdbx_audit_revision_history.revision_date
1 'Structure model' 1 0 2019-06-12
2 'Structure model' 1 1 2020-01-08
#
_refine.entry_id              1ABC
_refine.ls_d_res_high         1.80
_refine.ls_R_factor_R_free    0.215
_refine.ls_R_factor_R_work    0.180
#
_cell.entry_id      1ABC
_cell.length_a      50.000
_cell.length_b      60.000
_cell.length_c      70.000
_cell.angle_alpha   90.00
_cell.angle_beta    90.00
_cell.angle_gamma   90.00
#
_symmetry.entry_id                1ABC
_symmetry.space_group_name_H-M    'P 21 21 21'
#
_atom_sites.entry_id                 1ABC
_atom_sites.fract_transf_matrix[1][1]   0.020000
_atom_sites.fract_transf_matrix[1][2]   0.000000
_atom_sites.fract_transf_matrix[1][3]   0.000000
_atom_sites.fract_transf_matrix[2][1]   0.000000
_atom_sites.fract_transf_matrix[2][2]   0.016667
_atom_sites.fract_transf_matrix[2][3]   0.000000
_atom_sites.fract_transf_matrix[3][1]   0.000000
_atom_sites.fract_transf_matrix[3][2]   0.000000
_atom_sites.fract_transf_matrix[3][3]   0.014286
_atom_sites.fract_transf_vector[1]      0.00000
_atom_sites.fract_transf_vector[2]      0.00000
_atom_sites.fract_transf_vector[3]      0.00000
#
loop_
_entity.id
_entity.type
_entity.src_method
_entity.pdbx_description
_entity.formula_weight
_entity.pdbx_number_of_molecules
1 polymer     man 'Test protease' 450.5  1
2 non-polymer syn 'ZINC ION'      65.409 1
3 water       nat water           18.015 2
#
_entity_poly.entity_id                  1
_entity_poly.type                       'polypeptide(L)'
_entity_poly.pdbx_seq_one_letter_code   MAGK
_entity_poly.pdbx_strand_id             A
#
loop_
_entity_poly_seq.entity_id
_entity_poly_seq.num
_entity_poly_seq.mon_id
_entity_poly_seq.hetero
1 1 MET n
1 2 ALA n
1 3 GLY n
1 4 LYS n
#
_entity_src_gen.entity_id                        1
_entity_src_gen.gene_src_common_name             Human
_entity_src_gen.pdbx_gene_src_scientific_name    'Homo sapiens'
_entity_src_gen.pdbx_gene_src_ncbi_taxonomy_id   9606
_entity_src_gen.pdbx_host_org_scientific_name    'Escherichia coli'
_entity_src_gen.pdbx_host_org_ncbi_taxonomy_id   562
#
loop_
_struct_asym.id
_struct_asym.pdbx_blank_PDB_chainid_flag
_struct_asym.pdbx_modified
_struct_asym.entity_id
_struct_asym.details
A N N 1 ?
B N N 2 ?
C N N 3 ?
#
_struct_ref.id                  1
_struct_ref.db_name             UNP
_struct_ref.db_code             TEST_HUMAN
_struct_ref.pdbx_db_accession   P12345
_struct_ref.entity_id           1
#
_struct_ref_seq.align_id                      1
_struct_ref_seq.ref_id                        1
_struct_ref_seq.pdbx_PDB_id_code              1ABC
_struct_ref_seq.pdbx_strand_id                A
_struct_ref_seq.seq_align_beg                 1
_struct_ref_seq.pdbx_seq_align_beg_ins_code   ?
_struct_ref_seq.seq_align_end                 4
_struct_ref_seq.pdbx_seq_align_end_ins_code   ?
_struct_ref_seq.pdbx_db_accession             P12345
_struct_ref_seq.db_align_beg                  10
_struct_ref_seq.pdbx_db_align_beg_ins_code    ?
_struct_ref_seq.db_align_end                  13
_struct_ref_seq.pdbx_db_align_end_ins_code    ?
_struct_ref_seq.pdbx_auth_seq_align_beg       1
_struct_ref_seq.pdbx_auth_seq_align_end       4
#
_struct_ref_seq_dif.align_id                     1
_struct_ref_seq_dif.pdbx_pdb_id_code             1ABC
_struct_ref_seq_dif.mon_id                       ALA
_struct_ref_seq_dif.pdbx_pdb_strand_id           A
_struct_ref_seq_dif.seq_num                      2
_struct_ref_seq_dif.pdbx_pdb_ins_code            ?
_struct_ref_seq_dif.pdbx_seq_db_name             UNP
_struct_ref_seq_dif.pdbx_seq_db_accession_code   P12345
_struct_ref_seq_dif.db_mon_id                    SER
_struct_ref_seq_dif.pdbx_seq_db_seq_num          11
_struct_ref_seq_dif.details                      'engineered mutation'
_struct_ref_seq_dif.pdbx_auth_seq_num            2
_struct_ref_seq_dif.pdbx_ordinal                 1
#
_struct_conn.id                         metalc1
_struct_conn.conn_type_id               metalc
_struct_conn.ptnr1_label_asym_id        A
_struct_conn.ptnr1_label_comp_id        LYS
_struct_conn.ptnr1_label_seq_id         4
_struct_conn.ptnr1_label_atom_id        NZ
_struct_conn.pdbx_ptnr1_label_alt_id    ?
_struct_conn.pdbx_ptnr1_PDB_ins_code    ?
_struct_conn.ptnr1_auth_asym_id         A
_struct_conn.ptnr1_auth_seq_id          4
_struct_conn.ptnr1_symmetry             1_555
_struct_conn.ptnr2_label_asym_id        B
_struct_conn.ptnr2_label_comp_id        ZN
_struct_conn.ptnr2_label_seq_id         .
_struct_conn.ptnr2_label_atom_id        ZN
_struct_conn.pdbx_ptnr2_label_alt_id    ?
_struct_conn.pdbx_ptnr2_PDB_ins_code    ?
_struct_conn.ptnr2_auth_asym_id         A
_struct_conn.ptnr2_auth_seq_id          101
_struct_conn.ptnr2_symmetry             1_555
_struct_conn.pdbx_value_order           ?
#
_struct_site.id                   AC1
_struct_site.pdbx_evidence_code   Software
_struct_site.details              'BINDING SITE FOR RESIDUE ZN A 101'
#
loop_
_struct_site_gen.id
_struct_site_gen.site_id
_struct_site_gen.pdbx_num_res
_struct_site_gen.label_comp_id
_struct_site_gen.label_asym_id
_struct_site_gen.label_seq_id
_struct_site_gen.pdbx_auth_ins_code
_struct_site_gen.auth_comp_id
_struct_site_gen.auth_asym_id
_struct_site_gen.auth_seq_id
_struct_site_gen.label_atom_id
_struct_site_gen.label_alt_id
_struct_site_gen.symmetry
_struct_site_gen.details
1 AC1 1 LYS A 4 ? LYS A 4 . . 1_555 ?
2 AC1 1 GLY A 2 ? GLY A 2 . . 1_555 ?
#
_pdbx_struct_assembly.id                   1
_pdbx_struct_assembly.details              author_defined_assembly
_pdbx_struct_assembly.oligomeric_details   dimeric
_pdbx_struct_assembly.oligomeric_count     2
#
_pdbx_struct_assembly_gen.assembly_id       1
_pdbx_struct_assembly_gen.oper_expression   1,2
_pdbx_struct_assembly_gen.asym_id_list      A,B,C
#
loop_
_pdbx_struct_oper_list.id
_pdbx_struct_oper_list.type
_pdbx_struct_oper_list.matrix[1][1]
_pdbx_struct_oper_list.matrix[1][2]
_pdbx_struct_oper_list.matrix[1][3]
_pdbx_struct_oper_list.vector[1]
_pdbx_struct_oper_list.matrix[2][1]
_pdbx_struct_oper_list.matrix[2][2]
_pdbx_struct_oper_list.matrix[2][3]
_pdbx_struct_oper_list.vector[2]
_pdbx_struct_oper_list.matrix[3][1]
_pdbx_struct_oper_list.matrix[3][2]
_pdbx_struct_oper_list.matrix[3][3]
_pdbx_struct_oper_list.vector[3]
1 'identity operation'         1.0 0.0 0.0 0.0  0.0 1.0 0.0 0.0  0.0 0.0 1.0 0.0
2 'crystal symmetry operation' -1.0 0.0 0.0 25.0 0.0 -1.0 0.0 30.0 0.0 0.0 1.0 0.0
#
loop_
_atom_site.group_PDB
_atom_site.id
_atom_site.type_symbol
_atom_site.label_atom_id
_atom_site.label_alt_id
_atom_site.label_comp_id
_atom_site.label_asym_id
_atom_site.label_entity_id
_atom_site.label_seq_id
_atom_site.pdbx_PDB_ins_code
_atom_site.Cartn_x
_atom_site.Cartn_y
_atom_site.Cartn_z
_atom_site.occupancy
_atom_site.B_iso_or_equiv
_atom_site.auth_seq_id
_atom_site.auth_asym_id
_atom_site.pdbx_PDB_model_num
ATOM   1  N  N  . ALA A 1 2 ?  0.000  0.000  0.000 1.00 10.00 2   A 1
ATOM   2  C  CA . ALA A 1 2 ?  1.458  0.000  0.000 1.00 10.00 2   A 1
ATOM   3  C  C  . ALA A 1 2 ?  2.009  1.420  0.000 1.00 10.00 2   A 1
ATOM   4  O  O  . ALA A 1 2 ?  1.246  2.380  0.000 1.00 10.00 2   A 1
ATOM   5  C  CB . ALA A 1 2 ?  1.986 -0.728 -1.232 1.00 10.00 2   A 1
ATOM   6  N  N  . GLY A 1 3 ?  3.326  1.536  0.000 1.00 11.00 3   A 1
ATOM   7  C  CA . GLY A 1 3 ?  3.970  2.840  0.000 1.00 11.00 3   A 1
ATOM   8  C  C  . GLY A 1 3 ?  5.480  2.750  0.000 1.00 11.00 3   A 1
ATOM   9  O  O  . GLY A 1 3 ?  6.040  1.660  0.000 1.00 11.00 3   A 1
ATOM   10 N  N  . LYS A 1 4 ?  6.170  3.880  0.000 1.00 12.00 4   A 1
ATOM   11 C  CA . LYS A 1 4 ?  7.620  3.900  0.000 1.00 12.00 4   A 1
ATOM   12 C  C  . LYS A 1 4 ?  8.150  5.320  0.000 1.00 12.00 4   A 1
ATOM   13 O  O  . LYS A 1 4 ?  7.400  6.290  0.000 1.00 12.00 4   A 1
ATOM   14 C  CB A LYS A 1 4 ?  8.180  3.150  1.200 0.60 14.00 4   A 1
ATOM   15 C  CB B LYS A 1 4 ?  8.100  3.200 -1.250 0.40 15.00 4   A 1
ATOM   16 N  NZ . LYS A 1 4 ? 11.500  1.900  0.300 1.00 16.00 4   A 1
HETATM 17 ZN ZN . ZN  B 2 . ? 13.400  1.500  0.500 1.00 20.00 101 A 1
HETATM 18 O  O  . HOH C 3 . ? 20.000 20.000 20.000 1.00 30.00 201 A 1
HETATM 19 O  O  . HOH C 3 . ? 22.000 20.000 20.000 1.00 30.00 202 A 1
#
"""


@pytest.fixture
def sample_mmcif_content() -> str:
    """A small but complete entry: one protein chain, a zinc ion and waters.

    Entity 1 declares MET-ALA-GLY-LYS; only ALA 2 to LYS 4 are observed.
    LYS 4 has two CB conformers, NZ coordinates the zinc ion.
    """
    return SAMPLE_MMCIF


@pytest.fixture
def atom_site():
    """Fixture building an ``_atom_site`` category from row overrides.

    Each positional argument is a dict of items overriding the default
    glycine CA row; no arguments gives the default row alone.
    """
    from cifstream.data.parsers.category import Category

    def _atom_site(*overrides: Dict[str, str]) -> Category:
        rows = [{**ATOM_SITE_DEFAULTS, **override} for override in (overrides or ({},))]
        return Category.from_rows("atom_site", rows)
    return _atom_site


@pytest.fixture
def category():
    """Fixture building any category from row dicts."""
    from cifstream.data.parsers.category import Category

    def _category(name: str, *rows: Dict[str, str]) -> Category:
        return Category.from_rows(name, rows)
    return _category


@pytest.fixture
def consume():
    """Fixture running a fresh consumer over the given categories."""
    from cifstream.data.parsers.mmcif_consumer import CifFileConsumer

    def _consume(*categories, config=None, dictionary=None):
        consumer = CifFileConsumer(config, dictionary)
        consumer.prepare()
        for cat in categories:
            consumer.consume(cat)
        return consumer.finish()
    return _consume


@pytest.fixture
def sample_structure(sample_mmcif_content):
    """The sample entry parsed with bonds and bioassemblies enabled."""
    from cifstream.config import ParsingConfig
    from cifstream.data.parsers.reader import CifFileReader

    config = ParsingConfig(create_atom_bonds=True, parse_bioassembly=True)
    return CifFileReader(config).read(io.StringIO(sample_mmcif_content))


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_mmcif_dir(temp_dir: Path) -> Path:
    """Create a temporary directory for mmCIF files."""
    mmcif_dir = temp_dir / "mmcif"
    mmcif_dir.mkdir()
    return mmcif_dir


# =============================================================================
# Skip Markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def assert_arrays_equal():
    """Fixture providing array comparison helper."""
    def _assert_arrays_equal(a: np.ndarray, b: np.ndarray, rtol: float = 1e-5, atol: float = 1e-8):
        np.testing.assert_allclose(a, b, rtol=rtol, atol=atol)
    return _assert_arrays_equal
