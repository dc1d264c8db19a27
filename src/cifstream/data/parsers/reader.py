"""mmCIF file reader.

Splits an mmCIF file into :class:`Category` tables and feeds them to a
:class:`CifFileConsumer`. Only the first data block is read. The reader
understands ``loop_`` tables, single ``_category.item value`` pairs,
quoted values and ``;``-delimited multi-line text fields; it does not
validate against the mmCIF dictionary.
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, TextIO, Tuple, Union

from cifstream.config import ParsingConfig
from cifstream.data.parsers.category import Category
from cifstream.data.parsers.chemcomp import MonomerDictionary
from cifstream.data.parsers.mmcif_consumer import CifFileConsumer
from cifstream.data.parsers.structure import Structure
from cifstream.data.parsers.xtal import SpaceGroupTable


logger = logging.getLogger(__name__)

# Token kinds
DATA = "data"
LOOP = "loop"
TAG = "tag"
VALUE = "value"

Token = Tuple[str, str]


def _split_line(line: str) -> Iterator[Token]:
    """Tokenize one line outside of a text field."""
    i = 0
    n = len(line)
    while i < n:
        c = line[i]
        if c.isspace():
            i += 1
            continue
        if c == "#":
            return

        if c in "'\"":
            # A closing quote only counts when followed by whitespace
            end = i + 1
            while True:
                end = line.find(c, end)
                if end == -1:
                    yield VALUE, line[i + 1:]
                    return
                if end + 1 >= n or line[end + 1].isspace():
                    yield VALUE, line[i + 1:end]
                    i = end + 1
                    break
                end += 1
            continue

        j = i
        while j < n and not line[j].isspace():
            j += 1
        word = line[i:j]
        i = j

        lower = word.lower()
        if lower.startswith("data_"):
            yield DATA, word[5:]
        elif lower == "loop_":
            yield LOOP, word
        elif word.startswith("_"):
            yield TAG, word
        else:
            yield VALUE, word


def tokenize(lines: Iterable[str]) -> Iterator[Token]:
    """Turn mmCIF lines into (kind, text) tokens."""
    text_field: Optional[List[str]] = None
    for raw in lines:
        line = raw.rstrip("\r\n")
        if text_field is not None:
            if line.startswith(";"):
                yield VALUE, "\n".join(text_field)
                text_field = None
                yield from _split_line(line[1:])
            else:
                text_field.append(line)
            continue
        if line.startswith(";"):
            text_field = [line[1:]]
            continue
        yield from _split_line(line)

    if text_field is not None:
        logger.warning("Unterminated text field at end of file")
        yield VALUE, "\n".join(text_field)


def _split_tag(tag: str) -> Tuple[str, str]:
    """'_atom_site.Cartn_x' -> ('atom_site', 'Cartn_x')."""
    name, _, item = tag[1:].partition(".")
    return name, item


class _BlockBuilder:
    """Collects the columns of every category of one data block, in file order."""

    def __init__(self):
        self.columns: Dict[str, Dict[str, List[str]]] = {}

    def add_pair(self, tag: str, value: str) -> None:
        name, item = _split_tag(tag)
        self.columns.setdefault(name, {})[item] = [value]

    def add_loop(self, tags: List[str], values: List[str]) -> None:
        if not tags:
            return
        width = len(tags)
        if len(values) % width:
            logger.warning(
                f"Loop starting with {tags[0]} has {len(values)} values for {width} items, "
                f"dropping the incomplete last row"
            )
            values = values[: len(values) - len(values) % width]
        for index, tag in enumerate(tags):
            name, item = _split_tag(tag)
            self.columns.setdefault(name, {})[item] = values[index::width]

    def categories(self) -> Iterator[Category]:
        for name, columns in self.columns.items():
            try:
                yield Category.from_columns(name, columns)
            except ValueError as e:
                logger.warning(f"Skipping malformed category _{name}: {e}")


def read_block(tokens: Iterable[Token]) -> Iterator[Category]:
    """Build the categories of the first data block from a token stream."""
    block = _BlockBuilder()
    seen_block = False
    pending_tag: Optional[str] = None
    in_loop = False
    loop_tags: List[str] = []
    loop_values: List[str] = []

    for kind, text in tokens:
        if kind == DATA:
            if seen_block:
                logger.debug(f"Ignoring data block {text} after the first one")
                break
            seen_block = True
            continue

        if kind == LOOP:
            if in_loop:
                block.add_loop(loop_tags, loop_values)
            in_loop, loop_tags, loop_values = True, [], []
            continue

        if kind == TAG:
            if in_loop and not loop_values:
                loop_tags.append(text)
                continue
            if in_loop:
                block.add_loop(loop_tags, loop_values)
                in_loop, loop_tags, loop_values = False, [], []
            if pending_tag is not None:
                logger.warning(f"No value for {pending_tag}")
            pending_tag = text
            continue

        if in_loop:
            loop_values.append(text)
        elif pending_tag is not None:
            block.add_pair(pending_tag, text)
            pending_tag = None
        else:
            logger.warning(f"Ignoring value {text!r} outside of any item")

    if in_loop:
        block.add_loop(loop_tags, loop_values)
    if pending_tag is not None:
        logger.warning(f"No value for {pending_tag}")

    yield from block.categories()


class CifFileReader:
    """Reads an mmCIF file and drives a :class:`CifFileConsumer` over it."""

    def __init__(
        self,
        config: Optional[ParsingConfig] = None,
        dictionary: Optional[MonomerDictionary] = None,
        space_groups: Optional[SpaceGroupTable] = None,
    ):
        self.config = config or ParsingConfig()
        self.dictionary = dictionary
        self.space_groups = space_groups

    def read_categories(self, file_or_path: Union[str, Path, TextIO]) -> Iterator[Category]:
        """Yield the categories of the first data block in file order."""
        content = self._read_file(file_or_path)
        yield from read_block(tokenize(content.splitlines()))

    def read(self, file_or_path: Union[str, Path, TextIO]) -> Structure:
        """Parse a file into a Structure.

        Args:
            file_or_path: Path to a .cif or .cif.gz file, or a text stream

        Returns:
            The Structure returned by the consumer's ``finish``
        """
        consumer = CifFileConsumer(self.config, self.dictionary, self.space_groups)
        consumer.prepare()
        for category in self.read_categories(file_or_path):
            consumer.consume(category)
        return consumer.finish()

    def _read_file(self, file_or_path: Union[str, Path, TextIO]) -> str:
        """Read file content from path or file object."""
        if isinstance(file_or_path, (str, Path)):
            path = Path(file_or_path)
            if path.suffix == ".gz":
                with gzip.open(path, "rt") as f:
                    return f.read()
            else:
                with open(path) as f:
                    return f.read()
        else:
            return file_or_path.read()


def parse_mmcif(path: Union[str, Path, TextIO], config: Optional[ParsingConfig] = None) -> Structure:
    """Convenience function to parse an mmCIF file."""
    return CifFileReader(config).read(path)
