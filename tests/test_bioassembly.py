"""Tests for biological assembly expansion."""

import numpy as np
import pytest


# =============================================================================
# Operator Expression Tests
# =============================================================================

class TestOperatorExpressions:
    """Tests for parse_operator_expression."""

    @pytest.mark.parametrize("expression,expected", [
        ("1", [("1",)]),
        ("1,2,5", [("1",), ("2",), ("5",)]),
        ("1-3", [("1",), ("2",), ("3",)]),
        ("(1-2,7)", [("1",), ("2",), ("7",)]),
        ("(1,2)(3,4)", [("1", "3"), ("1", "4"), ("2", "3"), ("2", "4")]),
        ("P", [("P",)]),
    ])
    def test_expressions(self, expression, expected):
        from cifstream.processing.bioassembly import parse_operator_expression

        assert parse_operator_expression(expression) == expected


# =============================================================================
# Builder Tests
# =============================================================================

def _operator_row(oper_id, rotation, translation):
    row = {"id": oper_id}
    for i in range(3):
        for j in range(3):
            row[f"matrix[{i + 1}][{j + 1}]"] = str(rotation[i][j])
        row[f"vector[{i + 1}]"] = str(translation[i])
    return row


TWOFOLD = ((-1.0, 0.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 1.0))


class TestBiologicalAssemblyBuilder:
    """Tests for operator parsing and transformation lists."""

    def test_parse_operators(self, category):
        from cifstream.processing.bioassembly import parse_operators

        operators = parse_operators(category(
            "pdbx_struct_oper_list",
            _operator_row("1", np.eye(3), (0.0, 0.0, 0.0)),
            _operator_row("2", TWOFOLD, (25.0, 30.0, 0.0)),
        ))

        assert sorted(operators) == ["1", "2"]
        np.testing.assert_allclose(operators["1"], np.eye(4))
        np.testing.assert_allclose(operators["2"][:3, 3], [25.0, 30.0, 0.0])

    def test_unparseable_operator_skipped(self, category):
        from cifstream.processing.bioassembly import parse_operators

        bad = _operator_row("2", TWOFOLD, (25.0, 30.0, 0.0))
        bad["vector[2]"] = "thirty"
        operators = parse_operators(category(
            "pdbx_struct_oper_list",
            _operator_row("1", np.eye(3), (0.0, 0.0, 0.0)),
            bad,
        ))

        assert list(operators) == ["1"]

    def test_transformation_order(self):
        from cifstream.processing.bioassembly import BiologicalAssemblyBuilder

        operators = {"1": np.eye(4), "2": np.eye(4)}
        operators["2"][0, 3] = 5.0
        gens = [
            {"assembly_id": "1", "oper_expression": "1,2", "asym_id_list": "A,B"},
            {"assembly_id": "2", "oper_expression": "1", "asym_id_list": "C"},
        ]

        transforms = BiologicalAssemblyBuilder().get_bio_unit_transformation_list("1", gens, operators)

        assert [(t.id, t.chain_id) for t in transforms] == [("1", "A"), ("1", "B"), ("2", "A"), ("2", "B")]
        assert transforms[0].is_identity
        assert not transforms[2].is_identity
        assert transforms[0].matrix is not transforms[1].matrix

    def test_cartesian_product_composes_operators(self):
        from cifstream.processing.bioassembly import BiologicalAssemblyBuilder

        rotate = np.eye(4)
        rotate[:3, :3] = TWOFOLD
        shift = np.eye(4)
        shift[:3, 3] = [1.0, 2.0, 3.0]
        gens = [{"assembly_id": "1", "oper_expression": "(R)(T)", "asym_id_list": "A"}]

        transforms = BiologicalAssemblyBuilder().get_bio_unit_transformation_list(
            "1", gens, {"R": rotate, "T": shift}
        )

        assert len(transforms) == 1
        assert transforms[0].id == "RxT"
        # Apply T first, then R
        np.testing.assert_allclose(transforms[0].transform_point([0.0, 0.0, 0.0]), [-1.0, -2.0, 3.0])

    def test_undefined_operator_drops_copy(self):
        from cifstream.processing.bioassembly import BiologicalAssemblyBuilder

        gens = [{"assembly_id": "1", "oper_expression": "1,9", "asym_id_list": "A"}]

        transforms = BiologicalAssemblyBuilder().get_bio_unit_transformation_list("1", gens, {"1": np.eye(4)})

        assert [t.id for t in transforms] == ["1"]

    def test_transform_points(self):
        from cifstream.processing.bioassembly import BiologicalAssemblyTransformation

        matrix = np.eye(4)
        matrix[:3, :3] = TWOFOLD
        matrix[:3, 3] = [25.0, 30.0, 0.0]
        transform = BiologicalAssemblyTransformation("2", "A", matrix)

        coords = np.array([[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]])
        np.testing.assert_allclose(transform.transform_point(coords), [[24.0, 28.0, 3.0], [25.0, 30.0, 0.0]])


# =============================================================================
# Consumer Integration Tests
# =============================================================================

class TestBioAssemblyInfo:
    """Tests for bioassemblies built at finish."""

    def test_sample_assembly(self, sample_structure):
        header = sample_structure.header

        assert header.nr_bio_assemblies == 1
        assembly = header.bio_assemblies[1]
        assert assembly.id == 1
        assert len(assembly.transforms) == 6
        assert assembly.macromolecular_size == 2
        assert {t.chain_id for t in assembly.transforms} == {"A", "B", "C"}

    def test_disabled_by_default(self, sample_mmcif_content):
        import io

        from cifstream.data.parsers.reader import parse_mmcif

        structure = parse_mmcif(io.StringIO(sample_mmcif_content))

        assert structure.header.bio_assemblies == {}

    def test_size_counts_polymers_without_sugars(self, atom_site, category, consume):
        from cifstream.config import ParsingConfig

        structure = consume(
            atom_site({"id": "1"}, {"id": "2", "label_asym_id": "B", "auth_asym_id": "B"}),
            category(
                "entity",
                {"id": "1", "type": "polymer", "pdbx_description": "Lectin"},
                {"id": "2", "type": "polymer", "pdbx_description": "SUGAR (2-MER)"},
            ),
            category("struct_asym", {"id": "A", "entity_id": "1"}, {"id": "B", "entity_id": "2"}),
            category("pdbx_struct_assembly", {"id": "1"}, {"id": "PAU"}),
            category(
                "pdbx_struct_assembly_gen",
                {"assembly_id": "1", "oper_expression": "1,2,3", "asym_id_list": "A,B,Z"},
                {"assembly_id": "PAU", "oper_expression": "1", "asym_id_list": "A"},
            ),
            category(
                "pdbx_struct_oper_list",
                _operator_row("1", np.eye(3), (0.0, 0.0, 0.0)),
                _operator_row("2", TWOFOLD, (0.0, 0.0, 0.0)),
                _operator_row("3", np.eye(3), (0.0, 0.0, 50.0)),
            ),
            config=ParsingConfig(parse_bioassembly=True),
        )
        assemblies = structure.header.bio_assemblies

        assert list(assemblies) == [1]
        assert len(assemblies[1].transforms) == 9
        assert assemblies[1].macromolecular_size == 3
