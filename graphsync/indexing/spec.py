"""
Index specifications: which labels are indexed, where, and with which properties.

An index specification string lists one or more entries separated by ``;``::

    people:Person(first_name,last_name);places:City(name)

Each entry maps a graph label to a search index and the property names to
project into the indexed document. A label may appear in several entries, in
which case every node carrying it is written to each of those indices.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from .errors import IndexSpecParseError

ENTRY_SEPARATOR = ";"
PROPERTY_SEPARATOR = ","

_ENTRY_RE = re.compile(
    r"^(?P<index>[^:()]*):(?P<label>[^:()]*)\((?P<props>[^()]*)\)$", re.DOTALL
)
_NAME_RE = re.compile(r"^[^\s,:;()]+$")


@dataclass(frozen=True)
class IndexSpec:
    """One label-to-index mapping with its projected property names."""

    index_name: str
    label: str
    properties: Tuple[str, ...]

    def __str__(self) -> str:
        props = PROPERTY_SEPARATOR.join(self.properties)
        return f"{self.index_name}:{self.label}({props})"


class IndexSpecTable(Mapping):
    """
    Read-only lookup from label name to the index specs registered for it.

    Built once at startup; specs sharing a label are kept in declaration
    order and applied independently.
    """

    def __init__(self, specs: Iterable[IndexSpec] = ()):
        by_label: Dict[str, List[IndexSpec]] = {}
        for spec in specs:
            by_label.setdefault(spec.label, []).append(spec)
        self._by_label: Dict[str, Tuple[IndexSpec, ...]] = {
            label: tuple(entries) for label, entries in by_label.items()
        }
        self._labels: FrozenSet[str] = frozenset(self._by_label)

    @classmethod
    def load(cls, spec_text: Optional[str]) -> "IndexSpecTable":
        """Parse an index specification string into a table."""
        return cls(parse_index_spec(spec_text))

    def __getitem__(self, label: str) -> Tuple[IndexSpec, ...]:
        return self._by_label[label]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_label)

    def __len__(self) -> int:
        return len(self._by_label)

    def labels(self) -> FrozenSet[str]:
        return self._labels

    def specs_for(self, label: str) -> Tuple[IndexSpec, ...]:
        return self._by_label.get(label, ())

    def all_specs(self) -> List[IndexSpec]:
        return [spec for specs in self._by_label.values() for spec in specs]

    def index_names(self) -> List[str]:
        names: List[str] = []
        for spec in self.all_specs():
            if spec.index_name not in names:
                names.append(spec.index_name)
        return names

    def __repr__(self) -> str:
        entries = ENTRY_SEPARATOR.join(str(spec) for spec in self.all_specs())
        return f"IndexSpecTable({entries!r})"


def _check_balanced(spec_text: str) -> None:
    depth = 0
    for ch in spec_text:
        if ch == "(":
            depth += 1
            if depth > 1:
                raise IndexSpecParseError("nested parentheses", spec_text)
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise IndexSpecParseError("unbalanced parentheses", spec_text)
    if depth != 0:
        raise IndexSpecParseError("unbalanced parentheses", spec_text)


def _validate_name(kind: str, value: str, spec_text: str) -> str:
    value = value.strip()
    if not value:
        raise IndexSpecParseError(f"empty {kind}", spec_text)
    if not _NAME_RE.match(value):
        raise IndexSpecParseError(f"invalid {kind} {value!r}", spec_text)
    return value


def parse_entry(entry: str, spec_text: Optional[str] = None) -> IndexSpec:
    """Parse a single ``indexName:Label(prop1,prop2)`` entry."""
    context = spec_text if spec_text is not None else entry
    candidate = entry.strip()
    if not candidate:
        raise IndexSpecParseError("empty entry", context)

    match = _ENTRY_RE.match(candidate)
    if match is None:
        if ":" not in candidate:
            raise IndexSpecParseError(
                f"missing ':' between index name and label in {candidate!r}",
                context,
            )
        raise IndexSpecParseError(f"malformed entry {candidate!r}", context)

    index_name = _validate_name("index name", match.group("index"), context)
    label = _validate_name("label", match.group("label"), context)

    properties: List[str] = []
    for raw in match.group("props").split(PROPERTY_SEPARATOR):
        prop = _validate_name("property name", raw, context)
        if prop not in properties:
            properties.append(prop)

    return IndexSpec(index_name=index_name, label=label, properties=tuple(properties))


def parse_index_spec(spec_text: Optional[str]) -> List[IndexSpec]:
    """
    Parse a full index specification string.

    Raises:
        IndexSpecParseError: on empty input, unbalanced parentheses, a missing
            index name, label or property, or any other malformed entry. One
            bad entry fails the whole specification.
    """
    if spec_text is None or not spec_text.strip():
        raise IndexSpecParseError("index spec is empty")

    _check_balanced(spec_text)

    return [
        parse_entry(entry, spec_text) for entry in spec_text.split(ENTRY_SEPARATOR)
    ]


__all__ = [
    "IndexSpec",
    "IndexSpecTable",
    "parse_entry",
    "parse_index_spec",
]
