'''
chunk_buffer.py -- in-memory world data: block ids, per-block data values and biomes
for a region of the world, plus the rectangles that bound its populated part.
'''

from collections import namedtuple
import numpy

from config import CHUNK_SIZE

Rect = namedtuple('Rect', 'x y width height')
EMPTY_RECT = Rect(0, 0, 0, 0)


class ChunkDataBuffer(object):
    '''
    Block arrays are indexed [x, y, z] relative to `origin`; lookups take world
    coordinates and return 0 (air) outside the stored region so recipes can query
    neighbours freely.
    '''
    def __init__(self, blocks, data=None, biomes=None, origin=(0, 0, 0)):
        self.blocks = numpy.asarray(blocks, dtype='u2')
        assert self.blocks.ndim == 3
        if data is None:
            data = numpy.zeros(self.blocks.shape, dtype='u1')
        self.data = numpy.asarray(data, dtype='u1')
        assert self.data.shape == self.blocks.shape
        if biomes is None:
            biomes = numpy.zeros((self.blocks.shape[0], self.blocks.shape[2]), dtype='u1')
        self.biomes = numpy.asarray(biomes, dtype='u1')
        self.origin = tuple(int(a) for a in origin)
        self.xy_bounds = EMPTY_RECT
        self.xz_bounds = EMPTY_RECT
        self.update_bounds()

    def update_bounds(self):
        """Recompute the populated rectangles from the non-air cells."""
        filled = numpy.argwhere(self.blocks != 0)
        if len(filled) == 0:
            self.xy_bounds = EMPTY_RECT
            self.xz_bounds = EMPTY_RECT
            return
        lo = filled.min(axis=0) + self.origin
        hi = filled.max(axis=0) + self.origin + 1
        self.xy_bounds = Rect(int(lo[0]), int(lo[1]), int(hi[0] - lo[0]), int(hi[1] - lo[1]))
        self.xz_bounds = Rect(int(lo[0]), int(lo[2]), int(hi[0] - lo[0]), int(hi[2] - lo[2]))

    def set_bounds(self, xy, xz):
        self.xy_bounds = Rect(*xy)
        self.xz_bounds = Rect(*xz)

    def get_xy_boundaries(self):
        return self.xy_bounds

    def get_xz_boundaries(self):
        return self.xz_bounds

    def _index(self, x, y, z):
        ox, oy, oz = self.origin
        i, j, k = x - ox, y - oy, z - oz
        sx, sy, sz = self.blocks.shape
        if 0 <= i < sx and 0 <= j < sy and 0 <= k < sz:
            return i, j, k
        return None

    def get_block_id(self, x, y, z):
        idx = self._index(x, y, z)
        if idx is None:
            return 0
        return int(self.blocks[idx])

    def get_block_data(self, x, y, z):
        idx = self._index(x, y, z)
        if idx is None:
            return 0
        return int(self.data[idx])

    def get_biome(self, x, z):
        i, k = x - self.origin[0], z - self.origin[2]
        if 0 <= i < self.biomes.shape[0] and 0 <= k < self.biomes.shape[1]:
            return int(self.biomes[i, k])
        return 0

    def set_block(self, position, block_id, data=0):
        idx = self._index(*position)
        assert idx is not None, f"{position} outside buffer"
        self.blocks[idx] = block_id
        self.data[idx] = data

    def chunks(self):
        """Chunk coordinates overlapping the populated area, z-major then x."""
        xz = self.xz_bounds
        if xz.width <= 0 or xz.height <= 0:
            return []
        cx0 = xz.x // CHUNK_SIZE
        cx1 = (xz.x + xz.width - 1) // CHUNK_SIZE
        cz0 = xz.y // CHUNK_SIZE
        cz1 = (xz.y + xz.height - 1) // CHUNK_SIZE
        return [(cx, cz) for cz in range(cz0, cz1 + 1) for cx in range(cx0, cx1 + 1)]
