#std/external libs
import time
import concurrent.futures
from collections import namedtuple
import numpy
from opensimplex import OpenSimplex

#local libs
from config import SECTOR_SIZE, CARVING_STAGES
from blocks import BLOCK_ID, AIR
from biomes import biome_catalog
from biome_policy import BiomeAllowlistPolicy
from vertical_policy import VerticalBoundsPolicy
from logutil import log
import config

STONE = BLOCK_ID['Stone']
DIRT = BLOCK_ID['Dirt']
GRASS = BLOCK_ID['Grass']
SAND = BLOCK_ID['Sand']
BEDROCK = BLOCK_ID['Bedrock']
WATER = BLOCK_ID['Water']

Sector = namedtuple('Sector', ['position', 'min_y', 'sea_level', 'blocks', 'biomes'])


class Biome(object):
    """ Host-side biome handle: what a biome source hands back for a column. """
    def __init__(self, key, surface, temperature, moisture, ocean=False):
        self.key = key
        self.surface = surface
        self.temperature = temperature
        self.moisture = moisture
        self.ocean = ocean

    def __repr__(self):
        return 'Biome(%s)' % self.key


HOST_BIOMES = [
    Biome('minecraft:plains', GRASS, 0.1, 0.0),
    Biome('minecraft:forest', GRASS, 0.0, 0.5),
    Biome('minecraft:desert', SAND, 0.8, -0.8),
    Biome('minecraft:taiga', GRASS, -0.5, 0.3),
    Biome('minecraft:snowy_plains', DIRT, -0.9, -0.2),
    Biome('minecraft:swamp', DIRT, 0.3, 0.9),
    Biome('minecraft:ocean', SAND, 0.0, 0.0, ocean=True),
    Biome('minecraft:warm_ocean', SAND, 0.8, 0.0, ocean=True),
    Biome('minecraft:frozen_ocean', SAND, -0.8, 0.0, ocean=True),
]


class SectorNoise2D(object):
    def __init__(self, seed, step = SECTOR_SIZE, step_offset = 0, scale = 1, offset = 0):
        self.noise = OpenSimplex(seed = seed)
        self.seed = seed
        self.step = step
        self.step_offset = step_offset
        self.scale = scale
        self.offset = offset
        self.grid = numpy.arange(SECTOR_SIZE, dtype=numpy.float64)

    def __call__(self, position):
        xs = (self.grid + position[0] + self.step_offset) / self.step
        zs = (self.grid + position[2] + self.step_offset) / self.step
        # noise2array indexes [z, x]; sectors are [x, z].
        N = self.noise.noise2array(xs, zs).T
        return N*self.scale + self.offset


class PolicyAwareGenerator(object):
    """ Minimal voxel sector generator that consults the policies at the same
    points a full host pipeline does: biome queries, per-sample substance,
    the terminal carving pass and world bounds.
    """

    def __init__(self, store, seed=None, biomes=None):
        if seed is None:
            seed = int(time.time())
        self.seed = seed
        self.store = store
        self.biome_policy = BiomeAllowlistPolicy(store)
        self.vertical_policy = VerticalBoundsPolicy(store)
        self.biomes = list(biomes if biomes is not None else HOST_BIOMES)
        self.catalog = biome_catalog(self.biomes, key=lambda biome: biome.key)
        self.land = [b for b in self.biomes if not b.ocean] or self.biomes
        self.oceans = [b for b in self.biomes if b.ocean] or self.biomes
        self.elevation = SectorNoise2D(seed=seed + 101, step=180.0, step_offset=240,
            scale=40.0, offset=float(config.HOST_SEA_LEVEL) + 5.0)
        self.temperature = SectorNoise2D(seed=seed + 106, step=680.0, step_offset=123)
        self.moisture = SectorNoise2D(seed=seed + 105, step=520.0, step_offset=700)

    def possible_biomes(self):
        return self.catalog

    def close(self):
        self.biome_policy.close()

    # ----- Interception points -----

    def noise_biome(self, temperature, moisture, elevation, snapshot=None):
        """ Pick the host biome for one column, then run it through the allow-list. """
        pool = self.oceans if elevation < self.vertical_policy.host_sea_level else self.land
        biome = min(pool, key=lambda b: (b.temperature - temperature) ** 2 + (b.moisture - moisture) ** 2)
        return self.biome_policy.filter_biome(biome.key, biome, self.catalog, snapshot)

    def compute_substance(self, y, density, snapshot=None):
        """ Per-sample substance: the policy may turn open space below its sea
        level into fluid before the host's own rules apply.
        """
        if self.vertical_policy.override_to_fluid(y, density, snapshot):
            return WATER
        if density > 0:
            return STONE
        if y < self.vertical_policy.host_sea_level:
            return WATER
        return AIR

    def apply_carvers(self, blocks, stage, min_y, snapshot=None):
        terminal = stage == CARVING_STAGES[-1]
        if self.vertical_policy.should_backfill_floor(terminal, snapshot):
            self.vertical_policy.backfill_floor(blocks, BEDROCK, min_y, snapshot)

    # ----- Sector generation -----

    def biome_map(self, position, snapshot=None):
        temperature = self.temperature(position)
        moisture = self.moisture(position)
        elevation = self.elevation(position)
        biomes = numpy.empty((SECTOR_SIZE, SECTOR_SIZE), dtype=object)
        for x in range(SECTOR_SIZE):
            for z in range(SECTOR_SIZE):
                biomes[x, z] = self.noise_biome(temperature[x, z], moisture[x, z], elevation[x, z], snapshot)
        return biomes

    def generate(self, position):
        """ Generate the sector at `position` (x, _, z block origin).

        Blocks are indexed (x, y, z) with y index 0 at the effective floor.
        The whole sector is built from the snapshot current when it starts;
        a reload part way through applies to the next sector.
        """
        snapshot = self.store.current
        bounds = self.vertical_policy.world_bounds(snapshot)
        ys = numpy.arange(bounds.min_y, bounds.min_y + bounds.height)
        elevation = self.elevation(position)
        density = elevation[:, None, :] - ys[None, :, None]

        solid = density > 0
        blocks = numpy.where(solid, STONE, AIR).astype('u2')
        blocks[(~solid) & (ys[None, :, None] < self.vertical_policy.host_sea_level)] = WATER
        blocks[self.vertical_policy.fluid_mask(ys[None, :, None], density, snapshot)] = WATER

        biomes = self.biome_map(position, snapshot)
        top = solid.sum(axis=1) - 1
        xs, zs = numpy.nonzero(top >= 0)
        surface = numpy.array([biomes[x, z].surface for x, z in zip(xs, zs)], dtype='u2')
        blocks[xs, top[xs, zs], zs] = surface

        for stage in CARVING_STAGES:
            self.apply_carvers(blocks, stage, bounds.min_y, snapshot)
        return Sector(tuple(position), bounds.min_y, bounds.sea_level, blocks, biomes)

    def generate_many(self, positions, workers=4):
        """ Generate sectors on a thread pool, one task per sector. """
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers,
                thread_name_prefix='SectorGen') as executor:
            futures = {executor.submit(self.generate, pos): pos for pos in positions}
            sectors = {}
            for future in concurrent.futures.as_completed(futures):
                pos = futures[future]
                sectors[pos] = future.result()
        log('MAPGEN', 'generated %d sectors on %d workers' % (len(sectors), workers), 'DEBUG')
        return sectors


policy_generator = None

def initialize_policy_map_generator(store, seed=None):
    global policy_generator
    policy_generator = PolicyAwareGenerator(store, seed=seed)
    return policy_generator


def generate_policy_sector(position):
    if policy_generator is None:
        raise RuntimeError('initialize_policy_map_generator() has not been called')
    return policy_generator.generate(position)
