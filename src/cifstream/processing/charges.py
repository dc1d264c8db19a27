"""Formal charge assignment from chemical component templates."""

from __future__ import annotations

import logging

from cifstream.data.parsers.structure import Group, Structure

logger = logging.getLogger(__name__)


class ChargeAdder:
    """Sets each atom's formal charge from its group's chemical component."""

    @staticmethod
    def add_charges(structure: Structure) -> int:
        """Assign charges to every atom in every model.

        Atoms of groups without a component template keep their charge.

        Returns:
            Number of atoms given a non-zero charge
        """
        charged = 0
        for model in structure.models:
            for chain in model.chains:
                for group in chain.groups:
                    charged += ChargeAdder._add_group_charges(group)
                    for alt in group.alt_locs:
                        charged += ChargeAdder._add_group_charges(alt)
        logger.debug("Assigned non-zero formal charges to %d atoms", charged)
        return charged

    @staticmethod
    def _add_group_charges(group: Group) -> int:
        if group.chem_comp is None:
            return 0
        charged = 0
        for atom in group.atoms:
            atom.charge = group.chem_comp.get_charge(atom.name)
            if atom.charge:
                charged += 1
        return charged
