'''
obj_output.py -- geometry buffer for one OBJ file: deduplicated vertices, quad faces,
and the material and uv/normal pools the faces refer to.
'''

import numpy

from pools import MaterialPool, UVNormalPool
from util import as_vertices, vertex_key, is_boundary_vertex


class Face(object):
    __slots__ = ("vertices", "uv", "normals", "mtl", "seq")

    def __init__(self, mtl, seq):
        self.vertices = [0, 0, 0, 0]
        self.uv = [0, 0, 0, 0]
        self.normals = [0, 0, 0, 0]
        self.mtl = mtl
        self.seq = seq

    def sort_key(self):
        return (self.mtl, self.seq)


class MeshAggregator(object):
    '''
    Collects the quads of a mesh. Vertices are welded by exact value: the same
    float32 position always maps to the same 1-based id. Offset and scale only
    apply while writing, stored vertices are never changed.
    '''
    def __init__(self, identifier='minecraft'):
        self.identifier = identifier
        self.vertices = [] #vertices not yet written, in id order
        self.vertex_map = {} #vertex key -> id
        self.vertex_counter = 1
        self.first_vertex_id = 1 #id of self.vertices[0]
        self.faces = []
        self.face_seq = 0
        self.material_map = MaterialPool()
        self.uvnorm_map = UVNormalPool()
        self.x_offset = 0.0
        self.y_offset = 0.0
        self.z_offset = 0.0
        self.file_scale = 1.0

    def set_offset(self, x, y, z):
        self.x_offset = float(x)
        self.y_offset = float(y)
        self.z_offset = float(z)

    def set_scale(self, scale):
        self.file_scale = float(scale)

    @property
    def vertex_count(self):
        """Number of vertex ids handed out so far."""
        return self.vertex_counter - 1

    @property
    def face_count(self):
        return len(self.faces)

    def get_vertex_id(self, vertex):
        return self.vertex_map.get(vertex_key(vertex))

    def _vertex_id(self, vert):
        key = vertex_key(vert)
        vid = self.vertex_map.get(key)
        if vid is None:
            vid = self.vertex_counter
            self.vertex_counter += 1
            self.vertex_map[key] = vid
            self.vertices.append(vert)
            assert self.first_vertex_id + len(self.vertices) == self.vertex_counter
        return vid

    def _new_face(self, mtl):
        face = Face(self.material_map.get_material_id(mtl), self.face_seq)
        self.face_seq += 1
        return face

    def add_face(self, vertices, mtl, trans=None, side=None):
        """Add a quad whose uvs and normals come from the side it faces."""
        verts = as_vertices(vertices)
        if trans is not None:
            verts = trans.apply(verts)
        verts = verts + numpy.float32(0.0) #fold -0.0
        face = self._new_face(mtl)
        face.uv, face.normals = self.uvnorm_map.calculate(side, verts)
        for i in range(4):
            face.vertices[i] = self._vertex_id(verts[i])
        self.faces.append(face)

    def add_face_uv(self, vertices, uvs, normals, mtl):
        """Add a quad with explicit per-corner uvs and normals."""
        verts = as_vertices(vertices) + numpy.float32(0.0)
        if len(uvs) != 4 or len(normals) != 4:
            raise ValueError(f"quad needs 4 uvs and 4 normals, got {len(uvs)} and {len(normals)}")
        face = self._new_face(mtl)
        for i in range(4):
            face.vertices[i] = self._vertex_id(verts[i])
            face.uv[i] = self.uvnorm_map.get_uv_id(uvs[i])
            face.normals[i] = self.uvnorm_map.get_normal_id(normals[i])
        self.faces.append(face)

    def serialize_mtllib(self, out, mtl_file):
        out.write("mtllib " + mtl_file + "\n")
        out.write("\n")

    def serialize_object_name(self, out):
        out.write("g " + self.identifier + "\n")
        out.write("\n")

    def serialize_vertices(self, out):
        if not self.vertices:
            return
        v = numpy.array(self.vertices, dtype=numpy.float32).astype(numpy.float64)
        v = (v + (self.x_offset, self.y_offset, self.z_offset)) * self.file_scale
        for x, y, z in v:
            out.write("v %2.2f %2.2f %2.2f\n" % (x, y, z))

    def serialize_textures_and_normals(self, out):
        self.uvnorm_map.print(out)

    def serialize_faces(self, out, obj_per_mat=False):
        """Write faces grouped by material; usemtl only where the material changes."""
        self.faces.sort(key=Face.sort_key)
        last_mtl = -1
        for f in self.faces:
            if f.mtl != last_mtl:
                out.write("\n")
                if obj_per_mat:
                    out.write("g %s_%d\n" % (self.identifier, f.mtl))
                out.write("usemtl " + self.material_map.get_material_name(f.mtl) + "\n")
                last_mtl = f.mtl
            out.write("f " + " ".join("%d/%d/%d" % (f.vertices[i], f.uv[i], f.normals[i]) for i in range(4)) + "\n")

    def clear_data(self, remove_duplicates):
        '''
        Drop the faces and the written vertices after a flush. With remove_duplicates
        the chunk-edge vertices stay in the map so faces of the next chunk weld onto
        them; every other vertex is forgotten. Ids keep counting up either way.
        '''
        self.faces = []
        self.first_vertex_id = self.vertex_counter
        if not remove_duplicates:
            self.vertices = []
            self.vertex_map.clear()
            return

        #keep edge vertices
        for v in self.vertices:
            if not is_boundary_vertex(v):
                del self.vertex_map[vertex_key(v)]
        self.vertices = []

    def reset(self):
        """Start over for an independent output file."""
        self.clear_data(False)
        self.vertex_counter = 1
        self.first_vertex_id = 1
        self.face_seq = 0
        self.uvnorm_map.rewind()

    def extend(self, other):
        '''
        Concatenate another aggregator's pending geometry after this one's. Vertex ids
        are offset, materials merged by name and uv/normals by value. Vertices are not
        welded across the two.
        '''
        base = self.vertex_counter - other.first_vertex_id
        self.vertices.extend(other.vertices)
        self.vertex_counter += len(other.vertices)
        mtl_remap = {}
        for mtl_id, name in enumerate(other.material_map.names(), 1):
            mtl_remap[mtl_id] = self.material_map.get_material_id(name)
        uv_remap = [0] + [self.uvnorm_map.get_uv_id(uv) for uv in other.uvnorm_map.uvs.values]
        norm_remap = [0] + [self.uvnorm_map.get_normal_id(n) for n in other.uvnorm_map.normals.values]
        for f in sorted(other.faces, key=lambda f: f.seq):
            face = Face(mtl_remap[f.mtl], self.face_seq)
            self.face_seq += 1
            for i in range(4):
                assert other.first_vertex_id <= f.vertices[i] < other.vertex_counter, "face refers to a flushed vertex"
                face.vertices[i] = f.vertices[i] + base
                face.uv[i] = uv_remap[f.uv[i]]
                face.normals[i] = norm_remap[f.normals[i]]
            self.faces.append(face)
