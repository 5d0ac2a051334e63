'''
vertical_policy.py -- sea level, world floor/ceiling and floor backfill decisions
'''

from collections import namedtuple

import numpy

import config
from logutil import log_once
from policy_config import floor_to_section, ceil_to_section

WorldBounds = namedtuple('WorldBounds', ['min_y', 'height', 'sea_level'])

__all__ = ['VerticalBoundsPolicy', 'WorldBounds', 'floor_to_section', 'ceil_to_section']


class VerticalBoundsPolicy(object):
    """ Overrides for the host's vertical layout.

    Every method reads the store's current snapshot once, or works from the
    `snapshot` a caller pinned for a whole sector, and is otherwise a pure
    function of its arguments. When filtering is inactive, or an
    override is absent, the host defaults given at construction are returned.
    """

    def __init__(self, store, sea_level=None, min_y=None, height=None):
        self.store = store
        self.host_sea_level = sea_level if sea_level is not None else config.HOST_SEA_LEVEL
        self.host_min_y = min_y if min_y is not None else config.HOST_MIN_Y
        self.host_height = height if height is not None else config.HOST_HEIGHT

    @property
    def host_top(self):
        return self.host_min_y + self.host_height

    def effective_sea_level(self, snapshot=None):
        return self._sea_level(snapshot or self.store.current)

    def effective_floor(self, snapshot=None):
        return self._floor(snapshot or self.store.current)

    def effective_ceiling_height(self, floor, snapshot=None):
        """ Span from `floor` (already aligned) to the aligned ceiling.

        This is a height, not a coordinate: the top of the world is
        `floor + height`. A span that would be zero or negative is refused and
        the host default height returned instead.
        """
        return self._ceiling_height(snapshot or self.store.current, floor)

    def world_bounds(self, snapshot=None):
        snapshot = snapshot or self.store.current
        floor = self._floor(snapshot)
        return WorldBounds(floor, self._ceiling_height(snapshot, floor), self._sea_level(snapshot))

    def should_backfill_floor(self, terminal_carving_stage, snapshot=None):
        """ True once per column: on the last carving stage, when a floor
        override is in effect.
        """
        if not terminal_carving_stage:
            return False
        snapshot = snapshot or self.store.current
        return snapshot.filtering_active and snapshot.floor_level is not None

    def override_to_fluid(self, y, density, snapshot=None):
        snapshot = snapshot or self.store.current
        if not snapshot.filtering_active:
            return False
        return y < snapshot.sea_level and density <= 0

    def fluid_mask(self, ys, densities, snapshot=None):
        """ Vectorized override_to_fluid over a block of density samples.

        `ys` broadcasts against `densities` (e.g. shape (1, H, 1) against a
        sector's (X, H, Z) field).
        """
        densities = numpy.asarray(densities)
        snapshot = snapshot or self.store.current
        if not snapshot.filtering_active:
            return numpy.zeros(densities.shape, dtype=bool)
        ys = numpy.asarray(ys)
        return (ys < snapshot.sea_level) & (densities <= 0)

    def backfill_floor(self, blocks, block_id, array_min_y, snapshot=None):
        """ Write a solid layer across the whole x/z footprint of `blocks` at
        the effective floor. `blocks` is indexed (x, y, z) with y index 0 at
        world height `array_min_y`. Returns the row written, or None when the
        floor lies outside the array.
        """
        row = self.effective_floor(snapshot) - array_min_y
        if row < 0 or row >= blocks.shape[1]:
            return None
        blocks[:, row, :] = block_id
        return row

    def _sea_level(self, snapshot):
        if snapshot.filtering_active:
            return snapshot.sea_level
        return self.host_sea_level

    def _floor(self, snapshot):
        if snapshot.filtering_active and snapshot.floor_level is not None:
            return floor_to_section(snapshot.floor_level)
        return self.host_min_y

    def _ceiling_height(self, snapshot, floor):
        if snapshot.filtering_active and snapshot.ceiling_level is not None:
            top = ceil_to_section(snapshot.ceiling_level)
        else:
            top = self.host_top
        height = top - floor
        if height <= 0:
            log_once(('degenerate-height', snapshot.generation, floor), 'BOUNDS',
                     'ceiling %d is not above floor %d; using host height %d'
                     % (top, floor, self.host_height), 'ERROR')
            return self.host_height
        return height
