'''
biomes.py -- namespaced biome identifiers and helpers for host biome catalogs
'''

import re

import config

_NAMESPACE_RE = re.compile(r'^[a-z0-9_.-]+$')
_PATH_RE = re.compile(r'^[a-z0-9_.\-/]+$')


class InvalidBiomeIdError(ValueError):
    pass


class BiomeId(object):
    """ Immutable `namespace:path` identifier. Equal and hashed by the exact
    string pair, so it can key sets and dicts.

    """
    __slots__ = ('namespace', 'path', '_hash')

    def __init__(self, namespace, path):
        if not isinstance(namespace, str) or not _NAMESPACE_RE.match(namespace):
            raise InvalidBiomeIdError('invalid biome namespace: %r' % (namespace,))
        if not isinstance(path, str) or not _PATH_RE.match(path):
            raise InvalidBiomeIdError('invalid biome path: %r' % (path,))
        object.__setattr__(self, 'namespace', namespace)
        object.__setattr__(self, 'path', path)
        object.__setattr__(self, '_hash', hash((namespace, path)))

    def __setattr__(self, name, value):
        raise AttributeError('BiomeId is immutable')

    def __delattr__(self, name):
        raise AttributeError('BiomeId is immutable')

    @classmethod
    def parse(cls, text):
        """ Parse `namespace:path`, or a bare `path` in the default namespace.

        Raises InvalidBiomeIdError on anything else.
        """
        if isinstance(text, BiomeId):
            return text
        if not isinstance(text, str):
            raise InvalidBiomeIdError('biome id must be a string, got %r' % (text,))
        if ':' in text:
            namespace, path = text.split(':', 1)
        else:
            namespace, path = getattr(config, 'DEFAULT_NAMESPACE', 'minecraft'), text
        return cls(namespace, path)

    @classmethod
    def try_parse(cls, text):
        try:
            return cls.parse(text)
        except InvalidBiomeIdError:
            return None

    def __eq__(self, other):
        if not isinstance(other, BiomeId):
            return NotImplemented
        return self.namespace == other.namespace and self.path == other.path

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return self._hash

    def __str__(self):
        return '%s:%s' % (self.namespace, self.path)

    def __repr__(self):
        return 'BiomeId(%r)' % str(self)

    def __reduce__(self):
        # Snapshots are pickled across loader processes.
        return (BiomeId, (self.namespace, self.path))


def biome_catalog(handles, key=None):
    """ Build the `(BiomeId, handle)` pairs a policy searches for fallbacks.

    `handles` is any iterable of host biome handles; `key` maps a handle to
    its identifier (string or BiomeId). Handles without a usable identifier
    are skipped, as the host does for unregistered biomes.
    """
    if key is None:
        key = lambda handle: handle
    catalog = []
    for handle in handles:
        biome = BiomeId.try_parse(key(handle))
        if biome is not None:
            catalog.append((biome, handle))
    return catalog
