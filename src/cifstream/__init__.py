"""cifstream: streaming mmCIF parsing into macromolecular structures.

This package provides tools for:
- Reading mmCIF files into category tables
- Consuming a category stream into a Structure -> Model -> Chain -> Group -> Atom hierarchy
- Header metadata, crystallography, database references and sites
- SEQRES to ATOM alignment, bonds, charges and biological assemblies
"""

from cifstream.config import ParsingConfig
from cifstream.data.parsers.mmcif_consumer import CifFileConsumer
from cifstream.data.parsers.reader import CifFileReader, parse_mmcif
from cifstream.data.parsers.structure import Structure

__version__ = "0.1.0"
__all__ = ["ParsingConfig", "CifFileConsumer", "CifFileReader", "parse_mmcif", "Structure", "__version__"]
