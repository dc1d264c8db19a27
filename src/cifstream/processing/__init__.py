"""Post-processing of parsed structures.

- SEQRES handling: microheterogeneity removal, SEQRES to ATOM mapping
- Structure clean-up: alt-loc completion, deuterium checks
- Bonds and formal charges from the monomer dictionary
- Heuristic entity assignment
- Biological assembly transformations
"""

from cifstream.processing.bioassembly import (
    BiologicalAssemblyBuilder,
    BiologicalAssemblyTransformation,
    parse_operator_expression,
)
from cifstream.processing.bonds import BondMaker
from cifstream.processing.charges import ChargeAdder
from cifstream.processing.entities import create_purely_non_poly_entities, find_poly_entities
from cifstream.processing.seqres import (
    align_seqres,
    get_matching_atom_res,
    remove_seqres_heterogeneity,
    store_unaligned_seqres,
)
from cifstream.processing.structure_tools import clean_up_alt_locs, has_non_deuterated_equiv

__all__ = [
    "BiologicalAssemblyBuilder",
    "BiologicalAssemblyTransformation",
    "parse_operator_expression",
    "BondMaker",
    "ChargeAdder",
    "create_purely_non_poly_entities",
    "find_poly_entities",
    "align_seqres",
    "get_matching_atom_res",
    "remove_seqres_heterogeneity",
    "store_unaligned_seqres",
    "clean_up_alt_locs",
    "has_non_deuterated_equiv",
]
