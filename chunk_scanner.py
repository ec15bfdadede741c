'''
chunk_scanner.py -- walks the blocks of one chunk and lets each block's recipe emit
its quads. Quads are recorded per chunk and handed to a mesh in one piece, so a
chunk that fails halfway leaves nothing behind.
'''

import time
import threading
import traceback
import numpy

import logutil
from blocks import get_model, DEFAULT_MODEL
from util import as_vertices, chunk_extent


class ChunkRecorder(object):
    '''
    Stand-in for a MeshAggregator while a chunk is being scanned: accepts the same
    add_face/add_face_uv calls and replays them later. Quads are transformed and
    checked as they are recorded, so a bad recipe fails while its chunk is scanned
    and replay cannot stop halfway.
    '''
    def __init__(self, chunk_pos):
        self.chunk_pos = chunk_pos
        self.calls = []

    def add_face(self, vertices, mtl, trans=None, side=None):
        verts = as_vertices(vertices)
        if trans is not None:
            verts = trans.apply(verts)
        self.calls.append((False, verts, mtl, None, side))

    def add_face_uv(self, vertices, uvs, normals, mtl):
        verts = as_vertices(vertices)
        uvs = numpy.array(uvs, dtype=numpy.float64).reshape(-1, 2)
        normals = numpy.array(normals, dtype=numpy.float64).reshape(-1, 3)
        if len(uvs) != 4 or len(normals) != 4:
            raise ValueError(f"quad needs 4 uvs and 4 normals, got {len(uvs)} and {len(normals)}")
        self.calls.append((True, verts, [tuple(float(a) for a in uv) for uv in uvs],
                           [tuple(float(a) for a in n) for n in normals], mtl))

    @property
    def face_count(self):
        return len(self.calls)

    def replay(self, obj):
        for explicit, verts, a, b, c in self.calls:
            if explicit:
                obj.add_face_uv(verts, a, b, c)
            else:
                obj.add_face(verts, a, side=c)


class ChunkScanner(object):
    '''
    Scans chunks of a ChunkDataBuffer. Blocks are visited z, then x, then y, each
    ascending, which fixes face order (and so material tie-breaks) for a given world.
    '''
    def __init__(self, chunks):
        self.chunks = chunks
        self.warned_ids = set()
        self.warned_lock = threading.Lock()

    def clip(self, chunk_x, chunk_z):
        """Block ranges of the chunk inside the populated bounds, or None if empty."""
        xy = self.chunks.get_xy_boundaries()
        xz = self.chunks.get_xz_boundaries()
        xmin = xy.x
        xmax = xmin + xy.width
        ymin = xy.y
        ymax = ymin + xy.height
        zmin = xz.y
        zmax = zmin + xz.height

        xs, xe, zs, ze = chunk_extent(chunk_x, chunk_z)
        if xs < xmin: xs = xmin
        if xe > xmax: xe = xmax
        if zs < zmin: zs = zmin
        if ze > zmax: ze = zmax
        if xs >= xe or zs >= ze or ymin >= ymax:
            return None
        return xs, xe, ymin, ymax, zs, ze

    def _model(self, block_id):
        model = get_model(block_id)
        if model is None:
            with self.warned_lock:
                first = block_id not in self.warned_ids
                self.warned_ids.add(block_id)
            if first:
                logutil.log("SCAN", f"unknown block id {block_id}, using default cube", level="WARN")
            model = DEFAULT_MODEL
        return model

    def scan_chunk(self, chunk_x, chunk_z):
        '''
        Run the recipes of every non-air block in the chunk. Returns a ChunkRecorder
        (possibly empty), or None when a recipe raised and the chunk was skipped.
        '''
        logutil.set_chunk((chunk_x, chunk_z))
        t0 = time.perf_counter()
        rec = ChunkRecorder((chunk_x, chunk_z))
        bounds = self.clip(chunk_x, chunk_z)
        try:
            if bounds is not None:
                chunks = self.chunks
                xs, xe, ymin, ymax, zs, ze = bounds
                for z in range(zs, ze):
                    for x in range(xs, xe):
                        for y in range(ymin, ymax):
                            block_id = chunks.get_block_id(x, y, z)
                            if block_id == 0:
                                continue
                            block_data = chunks.get_block_data(x, y, z)
                            biome = chunks.get_biome(x, z)
                            self._model(block_id).generate(rec, chunks, x, y, z, block_data, biome)
        except Exception as e:
            logutil.log("SCAN", f"chunk ({chunk_x},{chunk_z}) skipped: {e!r}\n{traceback.format_exc()}", level="ERROR")
            return None
        else:
            logutil.log("CHUNK", f"scanned faces={rec.face_count} in {(time.perf_counter() - t0) * 1000.0:.1f}ms")
        finally:
            logutil.set_chunk(None)
        return rec

    def add_chunk_buffer(self, obj, chunk_x, chunk_z):
        """Scan a chunk straight into `obj`. Returns False when the chunk was skipped."""
        rec = self.scan_chunk(chunk_x, chunk_z)
        if rec is None:
            return False
        rec.replay(obj)
        return True
