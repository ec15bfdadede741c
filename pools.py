'''
pools.py -- id pools shared by the faces of a mesh: material names and the
texture coordinates/normals written as OBJ "vt"/"vn" entries.
'''

from util import SIDES, SIDE_NORMALS, tex_coord, quad_normal


class MaterialPool(object):
    '''
    Maps material names to small integer ids in first-seen order, starting at 1.
    Ids never change meaning for the lifetime of the pool.
    '''
    def __init__(self):
        self.ids = {}
        self.names_by_id = [None]

    def get_material_id(self, name):
        mtl_id = self.ids.get(name)
        if mtl_id is None:
            mtl_id = len(self.names_by_id)
            self.ids[name] = mtl_id
            self.names_by_id.append(name)
        return mtl_id

    def get_material_name(self, mtl_id):
        assert 0 < mtl_id < len(self.names_by_id), f"unknown material id {mtl_id}"
        return self.names_by_id[mtl_id]

    def names(self):
        return self.names_by_id[1:]

    def __len__(self):
        return len(self.names_by_id) - 1

    def __contains__(self, name):
        return name in self.ids


class _ValuePool(object):
    def __init__(self, prefix):
        self.prefix = prefix
        self.ids = {}
        self.values = []
        self.written = 0

    def get_id(self, value):
        value = tuple(float(a) + 0.0 for a in value)
        vid = self.ids.get(value)
        if vid is None:
            self.values.append(value)
            vid = len(self.values)
            self.ids[value] = vid
        return vid

    def print_new(self, out):
        for value in self.values[self.written:]:
            out.write(self.prefix + ' ' + ' '.join('%g' % a for a in value) + '\n')
        self.written = len(self.values)

    def __len__(self):
        return len(self.values)


class UVNormalPool(object):
    '''
    Pools texture coordinates and normals by value. Faces get their ids either from
    a side tag (one of the six axis directions or a registered custom tag) or from
    explicit per-corner values.
    '''
    def __init__(self):
        self.uvs = _ValuePool('vt')
        self.normals = _ValuePool('vn')
        self.sides = {}
        for side in SIDES:
            self.register_side(side, tex_coord(), SIDE_NORMALS[side])

    def register_side(self, tag, uvs, normal):
        assert len(uvs) == 4, "a side needs one uv per quad corner"
        self.sides[tag] = ([tuple(uv) for uv in uvs], tuple(normal))

    def calculate(self, side, vertices=None):
        """Return (uv_ids, normal_ids) for the four corners of a face facing `side`.

        Unknown or missing sides get unit-square uvs and a normal computed from the
        quad's own geometry.
        """
        entry = self.sides.get(side)
        if entry is None:
            uvs = tex_coord()
            normal = quad_normal(vertices) if vertices is not None else SIDE_NORMALS[SIDES[0]]
        else:
            uvs, normal = entry
        uv_ids = [self.uvs.get_id(uv) for uv in uvs]
        norm_id = self.normals.get_id(normal)
        return uv_ids, [norm_id] * 4

    def get_uv_id(self, uv):
        return self.uvs.get_id(uv)

    def get_normal_id(self, normal):
        return self.normals.get_id(normal)

    def print(self, out):
        """Write the vt/vn entries pooled since the previous call."""
        self.uvs.print_new(out)
        self.normals.print_new(out)

    def rewind(self):
        """Mark every entry unwritten so a new output file gets them all."""
        self.uvs.written = 0
        self.normals.written = 0
