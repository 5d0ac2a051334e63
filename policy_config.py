'''
policy_config.py -- immutable configuration snapshots for the world generation policies

A WorldConfig is built in one validating pass over raw operator values and is
never mutated afterwards. ConfigStore publishes snapshots by swapping a single
reference so that generation workers reading `store.current` always see one
complete snapshot.
'''

import threading

import config
from biomes import BiomeId, InvalidBiomeIdError
from logutil import log, reset_once

SECTION = getattr(config, 'SECTION_HEIGHT', 16)


def floor_to_section(value):
    """ Round down to a multiple of 16 (toward negative infinity). """
    return (value // SECTION) * SECTION


def ceil_to_section(value):
    """ Round up to a multiple of 16 (toward positive infinity). """
    return -((-value) // SECTION) * SECTION


class DegenerateBoundsError(ValueError):
    pass


class WorldConfig(object):
    __slots__ = ('enabled', 'allowed_biomes', 'allowed_set', 'sea_level',
                 'floor_level', 'ceiling_level', 'generation')

    def __init__(self, enabled=False, allowed_biomes=(), sea_level=None,
                 floor_level=None, ceiling_level=None, generation=0):
        allowed = tuple(allowed_biomes)
        if sea_level is None:
            sea_level = config.DEFAULT_SEA_LEVEL
        object.__setattr__(self, 'enabled', bool(enabled))
        object.__setattr__(self, 'allowed_biomes', allowed)
        object.__setattr__(self, 'allowed_set', frozenset(allowed))
        object.__setattr__(self, 'sea_level', sea_level)
        object.__setattr__(self, 'floor_level', floor_level)
        object.__setattr__(self, 'ceiling_level', ceiling_level)
        object.__setattr__(self, 'generation', generation)

    def __setattr__(self, name, value):
        raise AttributeError('WorldConfig is immutable; build a new snapshot')

    def __delattr__(self, name):
        raise AttributeError('WorldConfig is immutable; build a new snapshot')

    def replace(self, **changes):
        values = {name: getattr(self, name) for name in self.__slots__ if name != 'allowed_set'}
        values.update(changes)
        return WorldConfig(**values)

    @property
    def filtering_active(self):
        return self.enabled and bool(self.allowed_set)

    @property
    def fallback_biome(self):
        if not self.allowed_biomes:
            return None
        return self.allowed_biomes[0]

    @property
    def floor_normalized(self):
        if self.floor_level is None:
            return None
        return floor_to_section(self.floor_level)

    @property
    def ceiling_normalized(self):
        if self.ceiling_level is None:
            return None
        return ceil_to_section(self.ceiling_level)

    def check_bounds(self, default_floor=None, default_top=None):
        """ Raise DegenerateBoundsError if the aligned ceiling does not lie above
        the aligned floor. A missing floor is measured against `default_floor`
        (the host minimum), a missing ceiling against `default_top` (the host
        top of the world).
        """
        floor = self.floor_normalized
        if floor is None:
            floor = default_floor if default_floor is not None else config.HOST_MIN_Y
        ceiling = self.ceiling_normalized
        if ceiling is None:
            if self.floor_level is None:
                return
            top = default_top if default_top is not None else config.HOST_MIN_Y + config.HOST_HEIGHT
            if top <= floor:
                raise DegenerateBoundsError(
                    'floor %s (aligned %d) is not below the host top %d'
                    % (self.floor_level, floor, top))
            return
        if ceiling <= floor:
            raise DegenerateBoundsError(
                'ceiling %s (aligned %d) is not above floor %d'
                % (self.ceiling_level, ceiling, floor))

    def __eq__(self, other):
        if not isinstance(other, WorldConfig):
            return NotImplemented
        return all(getattr(self, n) == getattr(other, n) for n in self.__slots__)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __repr__(self):
        return ('WorldConfig(enabled=%r, allowed_biomes=[%s], sea_level=%r, floor_level=%r, '
                'ceiling_level=%r, generation=%r)' % (
                    self.enabled, ', '.join(str(b) for b in self.allowed_biomes),
                    self.sea_level, self.floor_level, self.ceiling_level, self.generation))


def default_raw_config():
    """ Operator defaults, keyed the way the mod's config file keys them. """
    return {
        'enabled': config.DEFAULT_ENABLED,
        'whitelistedBiomes': list(config.DEFAULT_ALLOWED_BIOMES),
        'seaLevel': config.DEFAULT_SEA_LEVEL,
        'bedrockLevel': config.DEFAULT_FLOOR_LEVEL,
        'maxHeight': config.DEFAULT_CEILING_LEVEL,
    }


_ENABLED_KEYS = ('enabled',)
_BIOME_KEYS = ('whitelistedBiomes', 'allowed_biomes', 'allowedBiomes')
_SEA_KEYS = ('seaLevel', 'sea_level')
_FLOOR_KEYS = ('bedrockLevel', 'floor_level', 'floorLevel')
_CEILING_KEYS = ('maxHeight', 'ceiling_level', 'ceilingLevel')


def _lookup(raw, keys):
    for key in keys:
        if key in raw:
            return key, raw[key]
    return None, None


def _read_bool(raw, keys, default):
    key, value = _lookup(raw, keys)
    if key is None:
        return default
    if not isinstance(value, bool):
        log('CONFIG', 'expected true/false for %s, got %r; using %r' % (key, value, default), 'WARN')
        return default
    return value


def _read_int(raw, keys, bounds, default):
    key, value = _lookup(raw, keys)
    if key is None or value is None:
        return default
    lo, hi = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        log('CONFIG', 'expected an integer for %s, got %r; using %r' % (key, value, default), 'WARN')
        return default
    if not lo <= value <= hi:
        log('CONFIG', '%s=%d outside [%d, %d]; using %r' % (key, value, lo, hi, default), 'WARN')
        return default
    return value


def _read_biomes(raw):
    key, values = _lookup(raw, _BIOME_KEYS)
    if key is None:
        values = config.DEFAULT_ALLOWED_BIOMES
    elif isinstance(values, (str, bytes)) or not hasattr(values, '__iter__'):
        log('CONFIG', 'expected a list for %s, got %r; using defaults' % (key, values), 'WARN')
        values = config.DEFAULT_ALLOWED_BIOMES
    allowed = []
    seen = set()
    for text in values:
        try:
            biome = BiomeId.parse(text)
        except InvalidBiomeIdError:
            log('CONFIG', 'invalid biome resource location: %r' % (text,), 'WARN')
            continue
        if biome in seen:
            continue
        seen.add(biome)
        allowed.append(biome)
    return tuple(allowed)


def build_config(raw=None, generation=0):
    """ Build a snapshot from raw operator values in a single pass.

    Bad entries are dropped with a warning; nothing here raises. Missing
    floor/ceiling values mean "no override" rather than the defaults, so a
    deployment without vertical remapping simply omits them.
    """
    if raw is None:
        raw = default_raw_config()
    return WorldConfig(
        enabled=_read_bool(raw, _ENABLED_KEYS, config.DEFAULT_ENABLED),
        allowed_biomes=_read_biomes(raw),
        sea_level=_read_int(raw, _SEA_KEYS, config.SEA_LEVEL_RANGE, config.DEFAULT_SEA_LEVEL),
        floor_level=_read_int(raw, _FLOOR_KEYS, config.FLOOR_LEVEL_RANGE, None),
        ceiling_level=_read_int(raw, _CEILING_KEYS, config.CEILING_LEVEL_RANGE, None),
        generation=generation,
    )


class ConfigStore(object):
    """ Holds the current WorldConfig and swaps it on load/reload.

    Readers take `store.current` once per query and work from that snapshot.
    Writers are serialized; listeners run after the swap, outside the lock.
    """

    def __init__(self, raw=None, host_min_y=None, host_height=None):
        self._lock = threading.Lock()
        self._listeners = []
        self._generation = 0
        self.host_min_y = host_min_y if host_min_y is not None else config.HOST_MIN_Y
        self.host_height = host_height if host_height is not None else config.HOST_HEIGHT
        self._current = WorldConfig()
        self.load(raw)

    @property
    def current(self):
        return self._current

    @property
    def generation(self):
        return self._current.generation

    @property
    def host_top(self):
        return self.host_min_y + self.host_height

    def subscribe(self, callback):
        with self._lock:
            self._listeners.append(callback)
        return callback

    def unsubscribe(self, callback):
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def load(self, raw=None):
        """ Initial load. Degenerate vertical bounds drop both overrides so the
        host defaults apply; the rest of the snapshot is kept.
        """
        snapshot = build_config(raw)
        try:
            snapshot.check_bounds(self.host_min_y, self.host_top)
        except DegenerateBoundsError as e:
            log('CONFIG', 'rejecting vertical bounds, host defaults stay in effect: %s' % e, 'ERROR')
            snapshot = snapshot.replace(floor_level=None, ceiling_level=None)
        self._publish(snapshot, 'loaded')
        return self._current

    def reload(self, raw):
        """ Replace the snapshot. Returns False, keeping the last good snapshot
        published, when the new vertical bounds are degenerate.
        """
        snapshot = build_config(raw)
        try:
            snapshot.check_bounds(self.host_min_y, self.host_top)
        except DegenerateBoundsError as e:
            log('CONFIG', 'reload rejected, keeping generation %d: %s' % (self.generation, e), 'ERROR')
            return False
        self._publish(snapshot, 'reloaded')
        return True

    def _publish(self, snapshot, action):
        with self._lock:
            self._generation += 1
            snapshot = snapshot.replace(generation=self._generation)
            self._current = snapshot
            listeners = list(self._listeners)
        # log_once keys carry the generation; the old ones can never match again.
        reset_once()
        log('POLICY', 'config %s (generation %d): allow-list contains %d biomes, sea level: %d, '
            'floor level: %s, ceiling level: %s' % (
                action, snapshot.generation, len(snapshot.allowed_biomes), snapshot.sea_level,
                snapshot.floor_level, snapshot.ceiling_level))
        for callback in listeners:
            try:
                callback(snapshot)
            except Exception as e:
                log('CONFIG', 'reload listener %r failed: %s' % (callback, e), 'ERROR')
