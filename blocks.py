import numpy
from util import (
    cb_v,
    cb_v_half,
    de_v,
    FACES,
    SIDES,
    tex_coord,
    quad_normal,
    Transform,
)

# Biome ids that change block materials.
BIOME_SNOWY = 12
BIOME_DESERT = 2


class Block(object):
    '''
    Full cube. Faces touching an occluding neighbour are culled. `materials` lists
    the top, bottom and side materials; the last entry is reused for missing sides,
    so a single name textures the whole cube.
    '''
    name = None
    materials = ('stone',)
    color = [128, 128, 128]
    alpha = 1.0
    vertices = cb_v
    # Occlusion flags: opaque cubes hide neighbours' faces; transparent blocks may hide faces of the same type only.
    occludes = True
    occludes_same = False

    def material(self, face, data, biome):
        return self.materials[min(face, len(self.materials) - 1)]

    def face_hidden(self, chunks, x, y, z, face):
        dx, dy, dz = FACES[face]
        nid = chunks.get_block_id(x + dx, y + dy, z + dz)
        if nid == 0:
            return False
        if occludes(nid):
            return True
        return bool(self.occludes_same and nid == BLOCK_ID[self.name])

    def generate(self, obj, chunks, x, y, z, data, biome):
        pos = numpy.array((x, y, z), dtype=numpy.float32)
        for face in range(6):
            if self.face_hidden(chunks, x, y, z, face):
                continue
            obj.add_face(0.5 * self.vertices[face] + pos, self.material(face, data, biome), side=SIDES[face])


class DirtWithGrass(Block):
    name = 'Grass'
    materials = ('grass_top', 'dirt', 'grass_side')
    color = [77, 160, 44]

    def material(self, face, data, biome):
        if face == 0 and biome == BIOME_SNOWY:
            return 'snow'
        return Block.material(self, face, data, biome)

class Dirt(Block):
    name = 'Dirt'
    materials = ('dirt',)
    color = [134, 96, 67]

class Stone(Block):
    name = 'Stone'
    materials = ('stone',)
    color = [125, 125, 125]

class CobbleStone(Block):
    name = 'Cobblestone'
    materials = ('cobblestone',)
    color = [110, 110, 110]

class Sand(Block):
    name = 'Sand'
    materials = ('sand',)
    color = [219, 207, 163]

class Wood(Block):
    name = 'Wood'
    materials = ('log_top', 'log_top', 'log_side')
    color = [102, 81, 51]

class Plank(Block):
    name = 'Plank'
    materials = ('planks',)
    color = [157, 128, 79]

class Brick(Block):
    name = 'Brick'
    materials = ('brick',)
    color = [150, 97, 83]

class Leaves(Block):
    name = 'Leaves'
    materials = ('leaves',)
    color = [50, 150, 70]
    occludes = False
    occludes_same = True

class Glass(Block):
    name = 'Glass'
    materials = ('glass',)
    color = [220, 240, 250]
    alpha = 0.3
    occludes = False
    occludes_same = True

class Water(Block):
    name = 'Water'
    materials = ('water',)
    color = [40, 90, 128]
    alpha = 0.6
    occludes = False
    occludes_same = True

    def material(self, face, data, biome):
        if biome == BIOME_SNOWY and face == 0:
            return 'ice'
        return 'water'


class Slab(Block):
    '''
    Half block. Data bit 8 puts the slab in the upper half; other bits are ignored.
    '''
    name = 'Stone Slab'
    materials = ('stone_slab_top', 'stone_slab_top', 'stone_slab_side')
    vertices = cb_v_half
    occludes = False

    def generate(self, obj, chunks, x, y, z, data, biome):
        upper = bool(data & 8)
        pos = numpy.array((x, y + (0.5 if upper else 0.0), z), dtype=numpy.float32)
        for face in range(6):
            # the inner half face never touches a neighbour
            if face == 0 and not upper or face == 1 and upper:
                hidden = False
            else:
                hidden = self.face_hidden(chunks, x, y, z, face)
            if hidden:
                continue
            obj.add_face(0.5 * self.vertices[face] + pos, self.material(face, data, biome), side=SIDES[face])


class Decoration(Block):
    '''
    Two crossed planes, each drawn from both sides, with explicit uvs.
    '''
    occludes = False

    def generate(self, obj, chunks, x, y, z, data, biome):
        pos = numpy.array((x, y, z), dtype=numpy.float32)
        mtl = self.material(0, data, biome)
        uvs = tex_coord()
        for quad in de_v:
            verts = 0.45 * quad + pos
            verts[:, 1] = 0.5 * quad[:, 1] + y
            n = quad_normal(verts)
            obj.add_face_uv(verts, uvs, [n] * 4, mtl)

class Rose(Decoration):
    name = 'Rose'
    materials = ('rose',)
    color = [200, 30, 30]

class Mushroom(Decoration):
    name = 'Mushroom'
    materials = ('mushroom_red',)
    color = [190, 40, 40]

class TallGrass(Decoration):
    name = 'Tall Grass'
    materials = ('tallgrass',)
    color = [90, 160, 60]

    def material(self, face, data, biome):
        if biome == BIOME_DESERT:
            return 'deadbush'
        return 'tallgrass'


# (ascending, curved, y rotation) per rail data value; unknown values lie flat north-south.
RAIL_SHAPES = {
    0: (False, False, 0),    # north_south
    1: (False, False, 90),   # east_west
    2: (True, False, 90),    # ascending_east
    3: (True, False, -90),   # ascending_west
    4: (True, False, 0),     # ascending_north
    5: (True, False, 180),   # ascending_south
    6: (False, True, 0),     # south_east
    7: (False, True, 90),    # south_west
    8: (False, True, 180),   # north_west
    9: (False, True, -90),   # north_east
}

class Rails(Block):
    name = 'Rails'
    materials = ('rail', 'rail_turn')
    color = [120, 110, 90]
    occludes = False

    flat = numpy.array([
        (-0.5, -0.47,  0.5),
        ( 0.5, -0.47,  0.5),
        ( 0.5, -0.47, -0.5),
        (-0.5, -0.47, -0.5),
    ], dtype=numpy.float32)
    ascending = numpy.array([
        (-0.5, -0.47,  0.5),
        ( 0.5, -0.47,  0.5),
        ( 0.5,  0.53, -0.5),
        (-0.5,  0.53, -0.5),
    ], dtype=numpy.float32)

    def generate(self, obj, chunks, x, y, z, data, biome):
        ascending, curved, angle = RAIL_SHAPES.get(data, RAIL_SHAPES[0])
        rt = Transform().translate(x, y, z).multiply(Transform().rotate(0, angle, 0))
        mtl = self.materials[1] if curved else self.materials[0]
        obj.add_face(self.ascending if ascending else self.flat, mtl, trans=rt)


class Vines(Block):
    '''
    Data bits 1/2/4/8 attach the vine to the south/west/north/east wall; a top face
    is added when the block above is opaque.
    '''
    name = 'Vines'
    materials = ('vine',)
    color = [60, 110, 40]
    occludes = False

    quad = numpy.array([
        (-0.5, -0.5, -0.47),
        ( 0.5, -0.5, -0.47),
        ( 0.5,  0.5, -0.47),
        (-0.5,  0.5, -0.47),
    ], dtype=numpy.float32)

    def generate(self, obj, chunks, x, y, z, data, biome):
        top_id = chunks.get_block_id(x, y + 1, z)
        top = top_id != 0 and occludes(top_id)
        trans = Transform().translate(x, y, z)
        mtl = self.material(0, data, biome)
        rotations = []
        if data & 4:
            rotations.append((0, 0, 0))
        if data & 1:
            rotations.append((0, 180, 0))
        if data & 8:
            rotations.append((0, 90, 0))
        if data & 2:
            rotations.append((0, -90, 0))
        if top:
            rotations.append((90, 0, 0))
        for ax, ay, az in rotations:
            obj.add_face(self.quad, mtl, trans=trans.multiply(Transform().rotate(ax, ay, az)))


# Explicit ordering keeps block IDs stable.
BLOCKS = [
    DirtWithGrass,
    Dirt,
    Stone,
    CobbleStone,
    Sand,
    Wood,
    Plank,
    Brick,
    Leaves,
    Glass,
    Water,
    Slab,
    Rose,
    Mushroom,
    TallGrass,
    Rails,
    Vines,
]
i = 1
BLOCK_ID = {}
for x in BLOCKS:
    BLOCK_ID[x.name] = i
    i+=1
BLOCK_OCCLUDES = numpy.array([False]+[x.occludes for x in BLOCKS], dtype = numpy.uint8)
# Lookup table from block id to its geometry recipe; 0 is air.
BLOCK_MODELS = [None] + [x() for x in BLOCKS]

# Recipe for ids with no entry in the table.
DEFAULT_MODEL = Block()

# Diffuse colour and opacity per material name, for the .mtl file.
MATERIAL_COLORS = {}
MATERIAL_ALPHA = {}
for x in BLOCKS:
    for m in x.materials:
        MATERIAL_COLORS.setdefault(m, x.color)
        MATERIAL_ALPHA.setdefault(m, x.alpha)
MATERIAL_COLORS.update({'snow': [240, 250, 250], 'ice': [160, 190, 250], 'deadbush': [150, 110, 50]})
MATERIAL_ALPHA.update({'ice': 0.8})


def occludes(block_id):
    """Unknown ids are drawn as opaque cubes, so they occlude too."""
    if block_id < len(BLOCK_OCCLUDES):
        return bool(BLOCK_OCCLUDES[block_id])
    return True


def get_model(block_id):
    """Recipe for `block_id`, or None when the id is unknown."""
    if 0 < block_id < len(BLOCK_MODELS):
        return BLOCK_MODELS[block_id]
    return None
