"""Group (residue) factory.

Decides which residue variant a component becomes. The monomer dictionary
is consulted first; when it does not know the component, the record kind
and the component's codes decide between amino acid, nucleotide and
heteroatom group.
"""

from __future__ import annotations

from typing import Optional

from cifstream.constants.residues import (
    UNKNOWN_GROUP_LABEL,
    get_one_letter_code_amino,
    is_nucleotide,
)
from cifstream.data.parsers.chemcomp import MonomerDictionary
from cifstream.data.parsers.structure import Group, GroupType

ATOM_RECORD = "ATOM"
HETATM_RECORD = "HETATM"


def one_letter_code_for(record_kind: str, three_letter_code: Optional[str]) -> Optional[str]:
    """One-letter code handed to :func:`create_group` for a row.

    Unknown components get 'X' on ATOM records and no code on HETATM
    records, so that unknown heteroatoms never become amino acids.
    """
    code = get_one_letter_code_amino(three_letter_code) or UNKNOWN_GROUP_LABEL
    if record_kind != ATOM_RECORD and code == UNKNOWN_GROUP_LABEL:
        return None
    return code


def create_group(
    record_kind: str,
    one_letter_code: Optional[str],
    three_letter_code: Optional[str],
    internal_seq_id: Optional[int],
    dictionary: Optional[MonomerDictionary] = None,
) -> Group:
    """Return a freshly typed group for one residue.

    Args:
        record_kind: 'ATOM' or 'HETATM'
        one_letter_code: Amino acid code, None or 'X' when unknown
        three_letter_code: Component code (``label_comp_id``)
        internal_seq_id: ``label_seq_id``, None for non-polymer groups
        dictionary: Monomer dictionary consulted before the heuristics

    Returns:
        A new Group with ``internal_seq_id`` set
    """
    group = None
    if dictionary is not None and three_letter_code is not None:
        group = dictionary.get_group(three_letter_code)

    if group is None:
        if record_kind == ATOM_RECORD:
            if is_nucleotide(three_letter_code):
                group = Group(group_type=GroupType.NUCLEOTIDE)
            elif one_letter_code is None or one_letter_code == UNKNOWN_GROUP_LABEL:
                group = Group(group_type=GroupType.HETATM)
            else:
                group = Group(group_type=GroupType.AMINOACID, one_letter_code=one_letter_code)
        else:
            if is_nucleotide(three_letter_code):
                group = Group(group_type=GroupType.NUCLEOTIDE)
            elif one_letter_code is not None:
                group = Group(group_type=GroupType.AMINOACID, one_letter_code=one_letter_code)
            else:
                group = Group(group_type=GroupType.HETATM)
        group.pdb_name = three_letter_code

    group.internal_seq_id = internal_seq_id
    return group
