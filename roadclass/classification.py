"""Road classification derived from OSM highway tags, and the fork predicate."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

logger = logging.getLogger(__name__)

# Keyed by OSM highway tag value. Lower is more important.
PRIORITIES: Mapping[str, int] = MappingProxyType({
    "motorway":       0,
    "motorway_link":  10,
    "trunk":          2,
    "trunk_link":     10,
    "primary":        4,
    "primary_link":   10,
    "secondary":      6,
    "secondary_link": 10,
    "tertiary":       8,
    "tertiary_link":  10,
    "unclassified":   10,
    "residential":    11,
    "service":        12,
    "living_street":  10,
    "track":          14,
    "road":           14,
    "path":           14,
    "driveway":       14,
})

DEFAULT_PRIORITY = 14
MAX_PRIORITY = 31  # five bits

# Separated directions.
MOTORWAY_TYPES = frozenset({"motorway", "trunk", "motorway_link", "trunk_link"})

LINK_TYPES = frozenset({
    "motorway_link", "trunk_link", "primary_link",
    "secondary_link", "tertiary_link",
})

# Pure connectivity ways, e.g. a fork on a primary vs a service road never happens.
IGNORABLE_TYPES = frozenset({"service", "track", "road", "path", "driveway"})

_MOTORWAY_BIT = 0x01
_LINK_BIT = 0x02
_IGNORABLE_BIT = 0x04
_PRIORITY_SHIFT = 3


@dataclass(frozen=True)
class RoadClassification:
    """Compact classification of a road segment.

    The default value (all False, priority 0) doubles as the unknown
    classification. Its priority equals that of a motorway, so compare the
    whole value against ``RoadClassification()`` to detect it.
    """

    motorway_class: bool = False
    link_class: bool = False
    may_be_ignored: bool = False
    priority: int = 0

    def __post_init__(self):
        for name in ("motorway_class", "link_class", "may_be_ignored"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a bool, got {getattr(self, name)!r}")
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise ValueError(f"priority must be an integer, got {self.priority!r}")
        if not 0 <= self.priority <= MAX_PRIORITY:
            raise ValueError(f"priority {self.priority} outside 0..{MAX_PRIORITY}")

    @classmethod
    def from_tags(cls, tags: Mapping[str, str]) -> "RoadClassification":
        """Derive the classification from the ``highway`` tag of a way.

        ``tags`` only needs a ``get(key, default)`` method, so plain dicts,
        Overpass tag objects and osmium tag lists all work.
        """
        highway = tags.get("highway", "") or ""

        priority = PRIORITIES.get(highway)
        if priority is None:
            logger.debug(f"Unknown highway type {highway!r}, using priority {DEFAULT_PRIORITY}")
            priority = DEFAULT_PRIORITY

        return cls(
            motorway_class=highway in MOTORWAY_TYPES,
            link_class=highway in LINK_TYPES,
            may_be_ignored=highway in IGNORABLE_TYPES,
            priority=priority,
        )

    @classmethod
    def from_bits(cls, bits: int) -> "RoadClassification":
        """Inverse of :meth:`to_bits`."""
        if not 0 <= bits <= 0xFF:
            raise ValueError(f"packed classification {bits} does not fit in one byte")
        return cls(
            motorway_class=bool(bits & _MOTORWAY_BIT),
            link_class=bool(bits & _LINK_BIT),
            may_be_ignored=bool(bits & _IGNORABLE_BIT),
            priority=bits >> _PRIORITY_SHIFT,
        )

    def to_bits(self) -> int:
        """Pack into a single byte: motorway, link, ignorable, then 5 bits of priority."""
        bits = self.priority << _PRIORITY_SHIFT
        if self.motorway_class:
            bits |= _MOTORWAY_BIT
        if self.link_class:
            bits |= _LINK_BIT
        if self.may_be_ignored:
            bits |= _IGNORABLE_BIT
        return bits

    @property
    def is_motorway_class(self) -> bool:
        return self.motorway_class and not self.link_class

    @property
    def is_ramp_class(self) -> bool:
        return self.motorway_class and self.link_class

    @property
    def is_link_class(self) -> bool:
        return self.link_class

    @property
    def is_low_priority_road_class(self) -> bool:
        return self.may_be_ignored

    def to_string(self) -> str:
        return (("motorway" if self.motorway_class else "normal")
                + ("_link" if self.link_class else "")
                + (" ignorable" if self.may_be_ignored else " important")
                + str(self.priority))

    __str__ = to_string


def derive(tags: Mapping[str, str]) -> RoadClassification:
    return RoadClassification.from_tags(tags)


def can_be_seen_as_fork(first: RoadClassification, second: RoadClassification) -> bool:
    """True if the two roads are close enough in priority (difference <= 1)
    that neither is the obvious choice at a junction."""
    return abs(first.priority - second.priority) <= 1


@dataclass(frozen=True)
class RoadClassificationData:
    """Per-way guidance data. Holds only the road classification for now."""

    road_classification: RoadClassification = field(default_factory=RoadClassification)

    @classmethod
    def from_tags(cls, tags: Mapping[str, str]) -> "RoadClassificationData":
        return cls(RoadClassification.from_tags(tags))
