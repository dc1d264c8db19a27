"""SEQRES handling: microheterogeneity removal and SEQRES to ATOM mapping.

SEQRES groups are built from ``entity_poly_seq`` before any author
numbering is known; their ``internal_seq_id`` is the 1-based position in
the declared sequence. Mapping to observed groups uses that position only.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from cifstream.data.parsers.structure import Chain, Group, Structure

logger = logging.getLogger(__name__)


def remove_seqres_heterogeneity(chain: Chain) -> Chain:
    """Return a new chain without consecutive groups sharing a residue number.

    Microheterogeneous positions list more than one component for the same
    SEQRES position; only the first one is kept.
    """
    trimmed = Chain(id=chain.id, name=chain.name)
    last = None
    for group in chain.groups:
        current = group.residue_number
        if last is None or current != last:
            trimmed.add_group(group)
        else:
            logger.debug(
                "Removing repeated SEQRES group %s at position %s (microheterogeneity)",
                group.pdb_name, current,
            )
        last = current
    return trimmed


def get_matching_atom_res(
    seqres_chain: Chain,
    atom_chains: Sequence[Chain],
    use_chain_id: bool,
) -> Optional[Chain]:
    """Find the observed chain that a SEQRES chain describes.

    Args:
        seqres_chain: Chain holding SEQRES groups
        atom_chains: Chains of one model
        use_chain_id: Match on ``id`` (label_asym_id) when True, on
            ``name`` (auth_asym_id) otherwise

    Returns:
        The first matching chain, or None
    """
    for chain in atom_chains:
        if use_chain_id:
            if chain.id == seqres_chain.id:
                return chain
        elif chain.name == seqres_chain.name:
            return chain
    return None


def align_seqres(structure: Structure, seqres_chains: Sequence[Chain]) -> None:
    """Replace SEQRES groups with the observed groups at the same position.

    Each model gets its own clones of the SEQRES groups. Positions without
    an observed group keep the clone, with its residue number cleared.
    """
    for model_index, model in enumerate(structure.models):
        for seqres_chain in seqres_chains:
            atom_chain = get_matching_atom_res(seqres_chain, model.chains, True)
            if atom_chain is None:
                logger.info(
                    "Could not map SEQRES chain with asym_id=%s to any ATOM chain in model %d, "
                    "most likely it has no observed residues",
                    seqres_chain.id, model_index + 1,
                )
                continue

            by_internal_id = {}
            for group in atom_chain.groups:
                if group.internal_seq_id is not None:
                    by_internal_id.setdefault(group.internal_seq_id, group)

            seqres_groups: List[Group] = []
            for seqres_group in seqres_chain.groups:
                observed = by_internal_id.get(seqres_group.internal_seq_id)
                if observed is not None:
                    seqres_groups.append(observed)
                    continue
                unobserved = seqres_group.copy_without_atoms()
                unobserved.residue_number = None
                seqres_groups.append(unobserved)
            atom_chain.set_seqres_groups(seqres_groups)


def store_unaligned_seqres(
    structure: Structure,
    seqres_chains: Sequence[Chain],
    header_only: bool,
) -> None:
    """Attach SEQRES groups to chains without mapping them to observed groups.

    In header-only mode there are no observed chains: the SEQRES chains
    themselves become the chains of the first model, holding SEQRES groups
    only.
    """
    if header_only:
        chains = []
        for seqres_chain in seqres_chains:
            groups = seqres_chain.groups
            seqres_chain.groups = []
            seqres_chain.set_seqres_groups(groups)
            chains.append(seqres_chain)
        if structure.models:
            structure.models[0].chains = chains
        else:
            structure.add_model(chains)
        return

    for model in structure.models:
        for seqres_chain in seqres_chains:
            atom_chain = get_matching_atom_res(seqres_chain, model.chains, False)
            if atom_chain is None:
                continue
            atom_chain.set_seqres_groups([group.copy_without_atoms() for group in seqres_chain.groups])
