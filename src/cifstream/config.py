"""Configuration management for cifstream.

This module defines the options that control how an mmCIF category stream
is turned into a Structure: which parts of the file are materialised and
which post-processing steps run once the stream ends.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from cifstream.constants.bonds import MAX_NUCLEOTIDE_BOND_LENGTH, MAX_PEPTIDE_BOND_LENGTH


class BondingConfig(BaseModel):
    """Distance limits used when linking consecutive polymer residues."""

    max_peptide_bond_length: float = Field(
        default=MAX_PEPTIDE_BOND_LENGTH,
        gt=0,
        description="Max C-N distance (Å) for a peptide bond"
    )
    max_nucleotide_bond_length: float = Field(
        default=MAX_NUCLEOTIDE_BOND_LENGTH,
        gt=0,
        description="Max O3'-P distance (Å) for a phosphodiester bond"
    )


class ParsingConfig(BaseSettings):
    """Options for consuming an mmCIF category stream.

    The consumer reads these once at construction and never mutates them.
    """

    header_only: bool = Field(
        default=False,
        description="Skip atom ingestion, sites, bonds and charges"
    )
    parse_ca_only: bool = Field(
        default=False,
        description="Keep only alpha carbons among carbon atoms"
    )
    align_seqres: bool = Field(
        default=True,
        description="Replace SEQRES groups by observed atom groups"
    )
    parse_bioassembly: bool = Field(
        default=False,
        description="Build biological assembly transformations"
    )
    create_atom_bonds: bool = Field(
        default=False,
        description="Create intra- and inter-residue bonds"
    )
    create_atom_charges: bool = Field(
        default=True,
        description="Assign formal charges from the monomer dictionary"
    )

    bonding: BondingConfig = Field(default_factory=BondingConfig)

    model_config = {"env_prefix": "CIFSTREAM_"}

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ParsingConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return self.model_dump()
