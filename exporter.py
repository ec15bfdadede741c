'''
exporter.py -- turns a ChunkDataBuffer into an OBJ/MTL file pair, scanning chunks on
a pool of worker threads.

Two strategies:
  shared   one MeshAggregator; scanned chunks are committed one at a time in chunk
           order, written out and flushed, keeping only chunk-edge vertices so the
           next chunk welds onto them. Memory stays around one chunk per worker.
  sharded  every worker thread owns an aggregator; the shards are concatenated at
           the end. No welding across shards, everything is held until the end.
'''

# standard library imports
import os
import time
import threading
import concurrent.futures
from collections import deque

# local imports
import config
import logutil
from blocks import MATERIAL_COLORS, MATERIAL_ALPHA
from chunk_scanner import ChunkScanner
from obj_output import MeshAggregator

# Returned by a worker that saw the cancel flag before starting its chunk.
CANCELLED = object()


class ExportResult(object):
    __slots__ = ("chunks_total", "chunks_written", "chunks_failed", "chunks_cancelled",
                 "vertices", "faces", "materials", "elapsed_ms")

    def __init__(self, chunks_total):
        self.chunks_total = chunks_total
        self.chunks_written = 0
        self.chunks_failed = 0
        self.chunks_cancelled = 0
        self.vertices = 0
        self.faces = 0
        self.materials = []
        self.elapsed_ms = 0.0

    @property
    def cancelled(self):
        return self.chunks_cancelled > 0

    def __repr__(self):
        return (f"ExportResult(chunks={self.chunks_written}/{self.chunks_total} failed={self.chunks_failed} "
                f"cancelled={self.chunks_cancelled} vertices={self.vertices} faces={self.faces})")


def write_mtl(out, material_names):
    for name in material_names:
        r, g, b = MATERIAL_COLORS.get(name, getattr(config, 'DEFAULT_MATERIAL_COLOR', [200, 200, 200]))
        out.write("newmtl " + name + "\n")
        out.write("Kd %.3f %.3f %.3f\n" % (r / 255.0, g / 255.0, b / 255.0))
        alpha = MATERIAL_ALPHA.get(name, 1.0)
        if alpha < 1.0:
            out.write("d %.3f\n" % alpha)
        out.write("\n")


class ObjExporter(object):

    def __init__(self, chunks, identifier=None, strategy=None, workers=None, max_inflight=None,
                 weld=None, obj_per_mat=None, scale=None, offset=None):
        self.chunks = chunks
        self.scanner = ChunkScanner(chunks)
        self.identifier = identifier or getattr(config, 'EXPORT_OBJECT_NAME', 'minecraft')
        self.strategy = strategy or getattr(config, 'EXPORT_STRATEGY', 'shared')
        self.workers = workers or getattr(config, 'EXPORT_WORKERS', 4)
        self.max_inflight = max_inflight or getattr(config, 'EXPORT_MAX_INFLIGHT', 8)
        self.weld = getattr(config, 'WELD_CHUNK_SEAMS', True) if weld is None else weld
        self.obj_per_mat = getattr(config, 'OBJ_PER_MATERIAL', False) if obj_per_mat is None else obj_per_mat
        self.scale = getattr(config, 'EXPORT_SCALE', 1.0) if scale is None else scale
        self.offset = getattr(config, 'EXPORT_OFFSET', (0, 0, 0)) if offset is None else offset
        if self.strategy not in ('shared', 'sharded'):
            raise ValueError(f"unknown export strategy {self.strategy!r}")
        self.cancel_event = threading.Event()
        self.commit_lock = threading.Lock()

    def cancel(self):
        '''
        Stop the running export (or the next one, if none is running) after the
        chunks already submitted; those are still written whole.
        '''
        self.cancel_event.set()

    def _new_aggregator(self):
        obj = MeshAggregator(self.identifier)
        obj.set_offset(*self.offset)
        obj.set_scale(self.scale)
        return obj

    def export(self, obj_path, mtl_path=None, chunk_list=None):
        '''
        Write the chunks in `chunk_list` (default: every populated chunk) to `obj_path`
        and their materials to `mtl_path` (default: same name, .mtl). I/O errors are
        raised to the caller.
        '''
        if chunk_list is None:
            chunk_list = self.chunks.chunks()
        chunk_list = list(chunk_list)
        if mtl_path is None:
            mtl_path = os.path.splitext(obj_path)[0] + '.mtl'
        result = ExportResult(len(chunk_list))
        t0 = time.perf_counter()
        logutil.log("EXPORT", f"exporting {len(chunk_list)} chunks to {obj_path} strategy={self.strategy} workers={self.workers}")
        try:
            with open(obj_path, 'w') as out:
                if self.strategy == 'shared':
                    obj = self._export_shared(out, os.path.basename(mtl_path), chunk_list, result)
                else:
                    obj = self._export_sharded(out, os.path.basename(mtl_path), chunk_list, result)
        finally:
            # a cancel applies to one export only
            self.cancel_event.clear()
        result.vertices = obj.vertex_count
        result.materials = obj.material_map.names()
        with open(mtl_path, 'w') as out:
            write_mtl(out, result.materials)
        result.elapsed_ms = (time.perf_counter() - t0) * 1000.0
        level = "WARN" if result.chunks_failed else "INFO"
        logutil.log("EXPORT", f"done {result} in {result.elapsed_ms:.1f}ms", level=level)
        return result

    def _scan(self, pos):
        if self.cancel_event.is_set():
            return CANCELLED
        return self.scanner.scan_chunk(*pos)

    def commit(self, obj, rec, out):
        """Add one scanned chunk to the shared mesh, write it and flush."""
        with self.commit_lock:
            rec.replay(obj)
            obj.serialize_vertices(out)
            obj.serialize_textures_and_normals(out)
            obj.serialize_faces(out, self.obj_per_mat)
            faces = obj.face_count
            obj.clear_data(self.weld)
        logutil.log("CHUNK", f"committed {rec.chunk_pos} faces={faces}")
        return faces

    def _tally(self, result, rec):
        if rec is CANCELLED:
            result.chunks_cancelled += 1
            return False
        if rec is None:
            result.chunks_failed += 1
            return False
        result.chunks_written += 1
        return True

    def _export_shared(self, out, mtl_name, chunk_list, result):
        obj = self._new_aggregator()
        obj.serialize_mtllib(out, mtl_name)
        obj.serialize_object_name(out)
        todo = iter(chunk_list)
        pending = deque()
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix='ExportWorker') as pool:
            def submit_next():
                if self.cancel_event.is_set():
                    return False
                for pos in todo:
                    pending.append((pos, pool.submit(self._scan, pos)))
                    return True
                return False
            try:
                while len(pending) < self.max_inflight and submit_next():
                    pass
                while pending:
                    pos, fut = pending.popleft()
                    rec = fut.result()
                    submit_next()
                    if self._tally(result, rec):
                        result.faces += self.commit(obj, rec, out)
            except BaseException:
                self.cancel_event.set()
                for _, fut in pending:
                    fut.cancel()
                raise
        # chunks never submitted because of a cancel
        result.chunks_cancelled += result.chunks_total - result.chunks_written - result.chunks_failed - result.chunks_cancelled
        return obj

    def _export_sharded(self, out, mtl_name, chunk_list, result):
        local = threading.local()
        shards = []
        shards_lock = threading.Lock()

        def scan_into_shard(pos):
            rec = self._scan(pos)
            if rec is None or rec is CANCELLED:
                return rec
            shard = getattr(local, 'obj', None)
            if shard is None:
                shard = self._new_aggregator()
                local.obj = shard
                with shards_lock:
                    shards.append(shard)
            rec.replay(shard)
            return rec

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix='ExportWorker') as pool:
            futures = [pool.submit(scan_into_shard, pos) for pos in chunk_list]
            for fut in futures:
                self._tally(result, fut.result())

        obj = self._new_aggregator()
        for shard in shards:
            obj.extend(shard)
        obj.serialize_mtllib(out, mtl_name)
        obj.serialize_object_name(out)
        obj.serialize_vertices(out)
        obj.serialize_textures_and_normals(out)
        obj.serialize_faces(out, self.obj_per_mat)
        result.faces = obj.face_count
        obj.clear_data(False)
        logutil.log("EXPORT", f"merged {len(shards)} shards")
        return obj
