# biome_world/biomes.py

"""
================================================================================
BIOME DEFINITIONS
================================================================================
The closed set of biome identifiers and their static definitions: display
metadata, tile names, autotile neighbour lists and the generation rules used
by the classifiers.

Data Contract:
---------------
- BiomeId: an IntEnum. Biome maps store these as small integers so they can
  be used directly as indices into lookup tables.
- BiomeRegistry: an immutable BiomeId -> BiomeDefinition table, built once
  and shared by reference between the classifiers, the autotile engine and
  the tile resolver.
- Side Effects: None.
================================================================================
"""

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import numpy as np


class BiomeId(IntEnum):
    OCEAN = 0
    OCEAN_DEEP = 1
    BEACH = 2
    MOIST_DIRT = 3
    SANDY_DIRT = 4
    HILLS_LOW = 5
    HILLS_MID = 6
    HILLS_HIGH = 7
    VALLEY = 8
    GRASS = 9
    SHORT_GRASS = 10
    FOREST_GRASS = 11
    SWAMP = 12
    SNOW_MOIST_DIRT = 13
    SNOW_GRASS = 14
    SNOW_HILLS = 15


@dataclass(frozen=True)
class Range:
    """An inclusive [min, max] range. A missing bound is unconstrained."""
    min: Optional[float] = None
    max: Optional[float] = None

    def contains(self, value) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True

    def mask(self, values: np.ndarray) -> np.ndarray:
        """Vectorised version of contains()."""
        result = np.ones(np.shape(values), dtype=bool)
        if self.min is not None:
            result &= values >= self.min
        if self.max is not None:
            result &= values <= self.max
        return result


@dataclass(frozen=True)
class GenerationRule:
    height: Optional[Range] = None
    moisture: Optional[Range] = None
    temperature: Optional[Range] = None

    def matches(self, height=None, moisture=None, temperature=None) -> np.ndarray:
        """
        Returns a boolean mask of where every constrained field is in range.
        Fields the rule constrains must be supplied; unconstrained ones are
        ignored.
        """
        result = None
        for rule_range, values in ((self.height, height),
                                   (self.moisture, moisture),
                                   (self.temperature, temperature)):
            if rule_range is None:
                continue
            if values is None:
                raise ValueError("GenerationRule needs a field it constrains.")
            part = rule_range.mask(values)
            result = part if result is None else result & part
        if result is None:
            # An empty rule matches everything; shape follows any given field.
            for values in (height, moisture, temperature):
                if values is not None:
                    return np.ones(np.shape(values), dtype=bool)
            return np.ones((), dtype=bool)
        return result


@dataclass(frozen=True)
class BiomeDefinition:
    id: BiomeId
    name: str
    description: str
    color: str
    # Tile names take a {season} placeholder.
    base_tile: str
    autotile_prefix: Optional[str] = None
    # Neighbour biomes that do NOT count as occupied when autotiling.
    skip_autotile: tuple = ()
    # If set, ONLY these neighbour biomes count as occupied. Wins over skip.
    only_autotile: tuple = ()
    # The coarse terrain category this biome refines.
    terrain: Optional[BiomeId] = None
    rule: GenerationRule = field(default_factory=GenerationRule)

    @property
    def is_autotiled(self) -> bool:
        return self.autotile_prefix is not None

    def counts_as_occupied(self, neighbor: Optional[BiomeId]) -> bool:
        """Whether a neighbour fills this biome's autotile bit."""
        if neighbor is None:
            return False
        if self.only_autotile:
            return neighbor in self.only_autotile
        if self.skip_autotile:
            return neighbor not in self.skip_autotile
        return True


class BiomeRegistry:
    """
    Immutable lookup of every biome definition plus the derived sets and
    tables the generation passes need.
    """

    def __init__(self, definitions: Iterable[BiomeDefinition],
                 impassable: Iterable[BiomeId] = (),
                 never_autotile: Iterable[BiomeId] = (),
                 snow_variants: Optional[Mapping[BiomeId, BiomeId]] = None):
        table = {}
        for definition in definitions:
            if definition.id in table:
                raise ValueError(f"Duplicate biome definition: {definition.id.name}")
            table[definition.id] = definition
        missing = [b.name for b in BiomeId if b not in table]
        if missing:
            raise ValueError(f"Biomes without a definition: {', '.join(missing)}")

        self._definitions = MappingProxyType(table)
        self.impassable = frozenset(impassable)
        self.never_autotile = frozenset(never_autotile)
        self.snow_variants = MappingProxyType(dict(snow_variants or {}))
        self.occupancy_lut = self._build_occupancy_lut()

    def __getitem__(self, biome_id) -> BiomeDefinition:
        return self._definitions[BiomeId(biome_id)]

    def __iter__(self):
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def rule(self, biome_id: BiomeId) -> GenerationRule:
        return self[biome_id].rule

    def refined_from(self, terrain: BiomeId) -> frozenset:
        """Every biome whose coarse terrain is `terrain`, itself included."""
        return frozenset(d.id for d in self if d.terrain == terrain or d.id == terrain)

    def _build_occupancy_lut(self) -> np.ndarray:
        """
        occupancy_lut[center, neighbor] is True when `neighbor` fills an
        autotile bit for a tile of biome `center`.
        """
        size = len(BiomeId)
        lut = np.zeros((size, size), dtype=bool)
        for center in BiomeId:
            definition = self._definitions[center]
            for neighbor in BiomeId:
                lut[center, neighbor] = definition.counts_as_occupied(neighbor)
        lut.setflags(write=False)
        return lut


def _tiles(folder: str, transition: str) -> dict:
    """Base tile and autotile prefix for a biome that transitions into `transition`."""
    prefix = f"biomes/{folder}/{folder}_{{season}}_{transition}_"
    return {"base_tile": prefix + "47", "autotile_prefix": prefix}


_MOIST_DIRT_GROUND = (
    BiomeId.MOIST_DIRT, BiomeId.HILLS_LOW, BiomeId.HILLS_MID, BiomeId.HILLS_HIGH,
    BiomeId.VALLEY, BiomeId.GRASS, BiomeId.SHORT_GRASS, BiomeId.FOREST_GRASS,
    BiomeId.SWAMP, BiomeId.SNOW_MOIST_DIRT, BiomeId.SNOW_GRASS, BiomeId.SNOW_HILLS,
)
_FREEZING = Range(max=0.15)

DEFAULT_BIOME_DEFINITIONS = (
    BiomeDefinition(
        id=BiomeId.OCEAN, name="Ocean",
        description="Endless water as far as the eye can see.",
        color="#0080e5", **_tiles("ocean", "sandydirt"),
        only_autotile=(BiomeId.OCEAN, BiomeId.OCEAN_DEEP),
        rule=GenerationRule(height=Range(max=0.5)),
    ),
    BiomeDefinition(
        id=BiomeId.OCEAN_DEEP, name="Deep Ocean",
        description="Deep and dark.",
        color="#004db2", **_tiles("oceandeep", "ocean"),
        only_autotile=(BiomeId.OCEAN_DEEP,),
        terrain=BiomeId.OCEAN,
        rule=GenerationRule(height=Range(max=0.25)),
    ),
    BiomeDefinition(
        id=BiomeId.BEACH, name="Beach",
        description="Where the ocean meets the land.",
        color="#e8d36a", **_tiles("beach", "sandydirt"),
        only_autotile=(BiomeId.BEACH, BiomeId.OCEAN, BiomeId.OCEAN_DEEP),
        terrain=BiomeId.SANDY_DIRT,
        rule=GenerationRule(height=Range(min=0.5, max=0.52)),
    ),
    BiomeDefinition(
        id=BiomeId.MOIST_DIRT, name="Dirt",
        description="Thick soil.",
        color="#665b47",
        base_tile="biomes/moistdirt/moistdirt_base",
        rule=GenerationRule(height=Range(min=0.52, max=0.82), moisture=Range(min=0.35)),
    ),
    BiomeDefinition(
        id=BiomeId.SANDY_DIRT, name="Sandy Dirt",
        description="The kind with little rocks and sharp bits.",
        color="#ddd29b", **_tiles("sandydirt", "moistdirt"),
        skip_autotile=_MOIST_DIRT_GROUND,
        rule=GenerationRule(height=Range(min=0.5), moisture=Range(min=0.0, max=1.0)),
    ),
    BiomeDefinition(
        id=BiomeId.HILLS_LOW, name="Foothills",
        description="Rolling ground that tires the legs.",
        color="#7d7670", **_tiles("hillslow", "moistdirt"),
        only_autotile=(BiomeId.HILLS_LOW, BiomeId.HILLS_MID, BiomeId.HILLS_HIGH, BiomeId.SNOW_HILLS),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(height=Range(min=0.7, max=0.75), moisture=Range(min=0.3)),
    ),
    BiomeDefinition(
        id=BiomeId.HILLS_MID, name="Hills",
        description="Rough terrain with a distinct lack of easy paths.",
        color="#6e6864", **_tiles("hills", "moistdirt"),
        only_autotile=(BiomeId.HILLS_MID, BiomeId.HILLS_HIGH, BiomeId.SNOW_HILLS),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(height=Range(min=0.75, max=0.79), moisture=Range(min=0.3)),
    ),
    BiomeDefinition(
        id=BiomeId.HILLS_HIGH, name="High Hills",
        description="Steep, broken rock only goats would call a path.",
        color="#5a5551", **_tiles("hillshigh", "hills"),
        only_autotile=(BiomeId.HILLS_HIGH, BiomeId.SNOW_HILLS),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(height=Range(min=0.79, max=0.87), moisture=Range(min=0.3)),
    ),
    BiomeDefinition(
        id=BiomeId.VALLEY, name="Valley",
        description="A low-lying area protected by hills.",
        color="#8df48d", **_tiles("valley", "moistdirt"),
        only_autotile=(BiomeId.VALLEY,),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(height=Range(min=0.5, max=0.6), moisture=Range(min=0.5, max=0.8)),
    ),
    BiomeDefinition(
        id=BiomeId.GRASS, name="Wild Grass",
        description="Tall grass perfect for small animals to hide in.",
        color="#74c857", **_tiles("grass", "moistdirt"),
        only_autotile=(BiomeId.GRASS, BiomeId.FOREST_GRASS),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(moisture=Range(min=0.5, max=0.7)),
    ),
    BiomeDefinition(
        id=BiomeId.SHORT_GRASS, name="Short Grass",
        description="Pleasantly short grass, found commonly most everywhere.",
        color="#8fd46f", **_tiles("shortgrass", "moistdirt"),
        only_autotile=(BiomeId.SHORT_GRASS, BiomeId.GRASS, BiomeId.FOREST_GRASS),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(moisture=Range(min=0.4, max=0.5)),
    ),
    BiomeDefinition(
        id=BiomeId.FOREST_GRASS, name="Forest Grass",
        description="Prickly and pale, this grass thrives under the canopy.",
        color="#398350", **_tiles("forestgrass", "moistdirt"),
        only_autotile=(BiomeId.FOREST_GRASS,),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(moisture=Range(min=0.65, max=0.8)),
    ),
    BiomeDefinition(
        id=BiomeId.SWAMP, name="Swamp",
        description="The murky water could be hiding anything...",
        color="#606d4c", **_tiles("swamp", "moistdirt"),
        only_autotile=(BiomeId.SWAMP,),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(height=Range(min=0.5, max=0.6), moisture=Range(min=0.8)),
    ),
    BiomeDefinition(
        id=BiomeId.SNOW_MOIST_DIRT, name="Frozen Dirt",
        description="Hard ground under a dusting of snow.",
        color="#d9dde0",
        base_tile="biomes/snowmoistdirt/snowmoistdirt_base",
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(temperature=_FREEZING),
    ),
    BiomeDefinition(
        id=BiomeId.SNOW_GRASS, name="Snowy Grass",
        description="Grass tips poking through the snow.",
        color="#e6efe9", **_tiles("snowgrass", "snowmoistdirt"),
        only_autotile=(BiomeId.SNOW_GRASS,),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(temperature=_FREEZING),
    ),
    BiomeDefinition(
        id=BiomeId.SNOW_HILLS, name="Snowy Hills",
        description="Wind-scoured slopes under deep snow.",
        color="#f4f7fa", **_tiles("snowhills", "snowmoistdirt"),
        only_autotile=(BiomeId.SNOW_HILLS,),
        terrain=BiomeId.MOIST_DIRT,
        rule=GenerationRule(temperature=_FREEZING),
    ),
)

IMPASSABLE_BIOMES = (
    BiomeId.OCEAN, BiomeId.OCEAN_DEEP, BiomeId.HILLS_MID, BiomeId.HILLS_HIGH,
    BiomeId.SNOW_HILLS, BiomeId.VALLEY,
)

# Base ground layers every other land biome transitions onto.
NEVER_AUTOTILE_BIOMES = (BiomeId.MOIST_DIRT, BiomeId.SNOW_MOIST_DIRT)

SNOW_VARIANTS = {
    BiomeId.MOIST_DIRT: BiomeId.SNOW_MOIST_DIRT,
    BiomeId.GRASS: BiomeId.SNOW_GRASS,
    BiomeId.SHORT_GRASS: BiomeId.SNOW_GRASS,
    BiomeId.FOREST_GRASS: BiomeId.SNOW_GRASS,
    BiomeId.HILLS_LOW: BiomeId.SNOW_HILLS,
    BiomeId.HILLS_MID: BiomeId.SNOW_HILLS,
    BiomeId.HILLS_HIGH: BiomeId.SNOW_HILLS,
}

DEFAULT_REGISTRY = BiomeRegistry(
    DEFAULT_BIOME_DEFINITIONS,
    impassable=IMPASSABLE_BIOMES,
    never_autotile=NEVER_AUTOTILE_BIOMES,
    snow_variants=SNOW_VARIANTS,
)
