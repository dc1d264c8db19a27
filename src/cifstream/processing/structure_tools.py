"""Structure clean-up helpers used after the atom records are read."""

from __future__ import annotations

import logging

from cifstream.constants.elements import Element
from cifstream.data.parsers.structure import Atom, Group, Structure

logger = logging.getLogger(__name__)


def has_non_deuterated_equiv(atom: Atom, group: Group) -> bool:
    """Check whether a deuterium atom has a hydrogen counterpart in the group.

    Deuterium names follow the hydrogen names with the leading 'H' replaced
    by 'D' (e.g. 'DG1' for 'HG1').
    """
    if atom.element != Element.D or not atom.name.startswith("D"):
        return False
    return group.has_atom("H" + atom.name[1:])


def clean_up_alt_locs(structure: Structure) -> int:
    """Give every alt-loc sibling the atoms it lacks from its primary group.

    Missing atoms are added as copies owned by the sibling, so each
    conformer is a complete residue.

    Returns:
        Number of atoms added
    """
    added = 0
    for model in structure.models:
        for chain in model.chains:
            for group in chain.groups:
                for alt in group.alt_locs:
                    for atom in group.atoms:
                        if alt.has_atom(atom.name):
                            continue
                        alt.add_atom(atom.copy())
                        added += 1
    if added:
        logger.debug("Added %d shared atoms to alt-loc groups", added)
    return added
