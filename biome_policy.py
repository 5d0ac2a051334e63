'''
biome_policy.py -- allow-list filtering of biome selections

The host calls `filter_biome` (or `is_allowed` followed by `resolve_fallback`)
after it has picked a biome for a coordinate. Disallowed biomes are replaced
by the first allow-list entry, looked up once per configuration epoch in the
host's catalog of available biomes.
'''

from biomes import BiomeId
from logutil import log_once


class _NotFound(object):
    __slots__ = ()

    def __repr__(self):
        return 'NOT_FOUND'

    def __bool__(self):
        return False


NOT_FOUND = _NotFound()


class BiomeAllowlistPolicy(object):
    def __init__(self, store):
        self.store = store
        # (generation, BiomeId) -> handle. Replaced, never cleared in place,
        # so an insert racing a reload lands in a dict nobody reads again.
        self._fallback_cache = {}
        store.subscribe(self._on_reload)

    def _on_reload(self, snapshot):
        self._fallback_cache = {}

    def close(self):
        """ Stop listening for reloads. The policy keeps answering from the
        store but its cache is no longer reset by it.
        """
        self.store.unsubscribe(self._on_reload)

    def is_filtering_active(self):
        return self.store.current.filtering_active

    def is_allowed(self, biome):
        return _allowed(self.store.current, biome)

    def fallback_biome(self):
        return self.store.current.fallback_biome

    def resolve_fallback(self, candidate, available_biomes):
        """ Return the host handle of the first allow-listed biome.

        `available_biomes` is an iterable of (BiomeId, handle) pairs; it is
        only walked on a cache miss. The result does not depend on
        `candidate`, which keeps neighbouring chunks generated on different
        workers consistent. Returns NOT_FOUND when filtering is inactive or
        the host does not know the fallback biome.
        """
        return self._resolve(self.store.current, candidate, available_biomes)

    def filter_biome(self, biome, handle, available_biomes, snapshot=None):
        """ Biome-selection call site: the handle the host should keep.

        `biome` may be None for host biomes without a registered identifier;
        those pass through untouched, as do all biomes when no substitute
        can be found. Pass `snapshot` to answer a whole sector from one
        configuration.
        """
        snapshot = snapshot or self.store.current
        if not snapshot.filtering_active or biome is None:
            return handle
        if not isinstance(biome, BiomeId):
            biome = BiomeId.try_parse(biome)
            if biome is None:
                return handle
        if _allowed(snapshot, biome):
            return handle
        replacement = self._resolve(snapshot, biome, available_biomes)
        if replacement is NOT_FOUND:
            return handle
        return replacement

    def _resolve(self, snapshot, candidate, available_biomes):
        if not snapshot.filtering_active:
            return NOT_FOUND
        fallback = snapshot.fallback_biome
        key = (snapshot.generation, fallback)
        cache = self._fallback_cache
        try:
            return cache[key]
        except KeyError:
            pass
        for biome, handle in available_biomes:
            if biome == fallback:
                cache[key] = handle
                return handle
        log_once(('fallback-missing',) + key, 'BIOME',
                 'fallback biome %s not found among the host biomes; leaving %s unfiltered'
                 % (fallback, candidate), 'WARN')
        return NOT_FOUND

    def cache_size(self):
        return len(self._fallback_cache)


def _allowed(snapshot, biome):
    if not snapshot.filtering_active:
        return True
    return biome in snapshot.allowed_set
