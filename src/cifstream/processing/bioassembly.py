"""Biological assembly transformations.

A biological assembly is generated by applying operators from
``_pdbx_struct_oper_list`` to the asymmetric-unit chains listed in
``_pdbx_struct_assembly_gen``. Operator expressions select the operators:

- Simple: "1"
- List: "1,2,5"
- Range: "(1-5)"
- Cartesian product: "(1-60)(61-88)", where the right operator is applied
  first and the combined operator is named "1x61"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from cifstream.data.parsers.category import Category
from cifstream.data.parsers.values import ParseError, as_optional_double

logger = logging.getLogger(__name__)

# Tolerance for floating point comparisons
ROTATION_TOLERANCE = 1e-6
TRANSLATION_TOLERANCE = 1e-4


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class BiologicalAssemblyTransformation:
    """One operator applied to one asymmetric-unit chain.

    The transformation is applied as: x' = R @ x + t, stored as a 4x4
    homogeneous matrix.

    Attributes:
        id: Operator id, "a" or "axb" for combined operators
        chain_id: ``label_asym_id`` of the chain the operator applies to
        matrix: 4x4 transformation matrix
    """
    id: str
    chain_id: str
    matrix: np.ndarray

    def __post_init__(self):
        if not isinstance(self.matrix, np.ndarray):
            self.matrix = np.array(self.matrix, dtype=np.float64)
        assert self.matrix.shape == (4, 4), \
            f"Matrix must be (4, 4), got {self.matrix.shape}"

    @property
    def rotation(self) -> np.ndarray:
        return self.matrix[:3, :3]

    @property
    def translation(self) -> np.ndarray:
        return self.matrix[:3, 3]

    @property
    def is_identity(self) -> bool:
        return (
            np.allclose(self.rotation, np.eye(3), atol=ROTATION_TOLERANCE) and
            np.allclose(self.translation, np.zeros(3), atol=TRANSLATION_TOLERANCE)
        )

    def transform_point(self, coords: np.ndarray) -> np.ndarray:
        """Apply to coordinates of shape (3,) or (N, 3)."""
        coords = np.asarray(coords, dtype=np.float64)
        return coords @ self.rotation.T + self.translation


# =============================================================================
# Operator Expressions
# =============================================================================

def _parse_simple_expression(expression: str) -> List[str]:
    """Parse a list or range expression without Cartesian product."""
    oper_ids = []
    for part in expression.strip().strip("()").split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part and not part.startswith("-"):
            start, end = part.split("-", 1)
            try:
                oper_ids.extend(str(i) for i in range(int(start), int(end) + 1))
            except ValueError:
                oper_ids.append(part)
        else:
            oper_ids.append(part)
    return oper_ids


def parse_operator_expression(expression: str) -> List[Tuple[str, ...]]:
    """Expand an operator expression into operator id tuples.

    Returns:
        One tuple per generated copy; tuples have one id for simple
        expressions and one id per factor for Cartesian products
    """
    expression = expression.strip()
    if ")(" in expression:
        factors = [_parse_simple_expression(p) for p in expression.split(")(")]
        result: List[Tuple[str, ...]] = [()]
        for ids in factors:
            result = [prefix + (op_id,) for prefix in result for op_id in ids]
        return result
    return [(op_id,) for op_id in _parse_simple_expression(expression)]


# =============================================================================
# Builder
# =============================================================================

def parse_operators(oper_list: Category) -> Dict[str, np.ndarray]:
    """Read ``_pdbx_struct_oper_list`` into operator id to 4x4 matrix.

    Operators with unparseable numbers are skipped with a warning.
    """
    operators: Dict[str, np.ndarray] = {}
    id_col = oper_list.get_column("id")
    for row in range(oper_list.row_count):
        oper_id = id_col.get(row)
        if oper_id is None:
            continue
        matrix = np.eye(4, dtype=np.float64)
        try:
            for i in range(3):
                for j in range(3):
                    value = as_optional_double(
                        oper_list.get_column(f"matrix[{i + 1}][{j + 1}]").get_string_data(row)
                    )
                    matrix[i, j] = value if value is not None else (1.0 if i == j else 0.0)
                value = as_optional_double(oper_list.get_column(f"vector[{i + 1}]").get_string_data(row))
                matrix[i, 3] = value if value is not None else 0.0
        except ParseError as e:
            logger.warning("Skipping struct_oper_list operator %s: %s", oper_id, e)
            continue
        operators[oper_id] = matrix
    return operators


class BiologicalAssemblyBuilder:
    """Expands assembly generator rows into per-chain transformations."""

    def get_bio_unit_transformation_list(
        self,
        assembly_id: str,
        assembly_gens: Sequence[Dict[str, Optional[str]]],
        operators: Dict[str, np.ndarray],
    ) -> List[BiologicalAssemblyTransformation]:
        """Build the transformations for one assembly.

        Args:
            assembly_id: ``_pdbx_struct_assembly.id``
            assembly_gens: Generator rows with keys 'assembly_id',
                'oper_expression' and 'asym_id_list'
            operators: Operator id to 4x4 matrix

        Returns:
            Transformations in generator, operator, chain order
        """
        transformations: List[BiologicalAssemblyTransformation] = []
        for gen in assembly_gens:
            if gen.get("assembly_id") != assembly_id:
                continue
            expression = gen.get("oper_expression")
            asym_ids = [a.strip() for a in (gen.get("asym_id_list") or "").split(",") if a.strip()]
            if not expression or not asym_ids:
                continue

            for oper_ids in parse_operator_expression(expression):
                matrix = self._combine(oper_ids, operators)
                if matrix is None:
                    continue
                transform_id = "x".join(oper_ids)
                for asym_id in asym_ids:
                    transformations.append(
                        BiologicalAssemblyTransformation(transform_id, asym_id, matrix.copy())
                    )
        return transformations

    def _combine(
        self,
        oper_ids: Tuple[str, ...],
        operators: Dict[str, np.ndarray],
    ) -> Optional[np.ndarray]:
        matrix = np.eye(4, dtype=np.float64)
        for oper_id in oper_ids:
            operator = operators.get(oper_id)
            if operator is None:
                logger.warning("Operator %s is not defined in _pdbx_struct_oper_list", oper_id)
                return None
            matrix = matrix @ operator
        return matrix
