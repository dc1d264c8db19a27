"""Heuristic entity assignment for files without entity categories.

Chains are grouped into entities by content: polymer chains by sequence,
non-polymer chains by their component names, and all water chains into a
single water entity. Chains of later models join the entity of the chain
with the same id in the first model.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from cifstream.data.parsers.structure import Chain, EntityInfo, EntityType

logger = logging.getLogger(__name__)


def _polymer_key(chain: Chain) -> str:
    return chain.seqres_sequence or chain.atom_sequence


def _non_polymer_key(chain: Chain) -> Tuple[str, ...]:
    return tuple(group.pdb_name or "" for group in chain.groups)


def _attach_later_models(models: Sequence[Sequence[Chain]], by_chain_id: Dict[str, EntityInfo]) -> None:
    for model in models[1:]:
        for chain in model:
            entity = by_chain_id.get(chain.id)
            if entity is None:
                logger.info("Chain %s of a later model has no counterpart in the first model", chain.id)
                continue
            entity.add_chain(chain)


def find_poly_entities(poly_models: Sequence[Sequence[Chain]]) -> List[EntityInfo]:
    """Create polymer entities from identical chain sequences.

    Args:
        poly_models: Polymer chains per model

    Returns:
        New entities numbered from 1 in order of first appearance
    """
    entities: List[EntityInfo] = []
    if not poly_models:
        return entities

    by_sequence: Dict[str, EntityInfo] = {}
    by_chain_id: Dict[str, EntityInfo] = {}
    for chain in poly_models[0]:
        key = _polymer_key(chain)
        entity = by_sequence.get(key)
        if entity is None:
            entity = EntityInfo(mol_id=len(entities) + 1, type=EntityType.POLYMER)
            by_sequence[key] = entity
            entities.append(entity)
        entity.add_chain(chain)
        by_chain_id[chain.id] = entity

    _attach_later_models(poly_models, by_chain_id)
    logger.debug("Found %d polymer entities from %d chains", len(entities), len(poly_models[0]))
    return entities


def create_purely_non_poly_entities(
    non_poly_models: Sequence[Sequence[Chain]],
    water_models: Sequence[Sequence[Chain]],
    entities: List[EntityInfo],
) -> None:
    """Append non-polymer and water entities to ``entities`` in place.

    Non-polymer chains with the same component composition share an
    entity; every water chain belongs to one water entity.
    """
    next_id = max((e.mol_id for e in entities), default=0) + 1

    by_chain_id: Dict[str, EntityInfo] = {}
    if non_poly_models:
        by_composition: Dict[Tuple[str, ...], EntityInfo] = {}
        for chain in non_poly_models[0]:
            key = _non_polymer_key(chain)
            entity = by_composition.get(key)
            if entity is None:
                entity = EntityInfo(
                    mol_id=next_id,
                    type=EntityType.NONPOLYMER,
                    description=key[0] if len(set(key)) == 1 else None,
                )
                next_id += 1
                by_composition[key] = entity
                entities.append(entity)
            entity.add_chain(chain)
            by_chain_id[chain.id] = entity
        _attach_later_models(non_poly_models, by_chain_id)

    if water_models and any(water_models):
        water = EntityInfo(mol_id=next_id, type=EntityType.WATER, description="water")
        entities.append(water)
        for model in water_models:
            for chain in model:
                water.add_chain(chain)
