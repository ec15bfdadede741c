import math
import numpy as np

from config import CHUNK_SIZE

# Unit cube quads, scaled by 0.5 around the block centre when emitted.
cb_v = np.array([
        [-1,+1,-1, -1,+1,+1, +1,+1,+1, +1,+1,-1],  # top
        [-1,-1,-1, +1,-1,-1, +1,-1,+1, -1,-1,+1],  # bottom
        [-1,-1,-1, -1,-1,+1, -1,+1,+1, -1,+1,-1],  # left
        [+1,-1,+1, +1,-1,-1, +1,+1,-1, +1,+1,+1],  # right
        [-1,-1,+1, +1,-1,+1, +1,+1,+1, -1,+1,+1],  # front
        [+1,-1,-1, -1,-1,-1, -1,+1,-1, +1,+1,-1],  # back
],dtype = np.float32).reshape(6,4,3)

c = 1
cb_v_half = np.array([
        [-1,+0,-1, -1,+0,+1, +1,+0,+1, +1,+0,-1],  # top
        [-1,-1,-1, +1,-1,-1, +1,-1,+1, -1,-1,+1],  # bottom
        [-c,-1,-1, -c,-1,+1, -c,+0,+1, -c,+0,-1],  # left
        [+c,-1,+1, +c,-1,-1, +c,+0,-1, +c,+0,+1],  # right
        [-1,-1,+c, +1,-1,+c, +1,+0,+c, -1,+0,+c],  # front
        [+1,-1,-c, -1,-1,-c, -1,+0,-c, +1,+0,-c],  # back
],dtype = np.float32).reshape(6,4,3)

# Two diagonal planes for flowers and other cross-shaped decorations.
de_v = np.array([
        [-1,-1,+1, +1,-1,-1, +1,+1,-1, -1,+1,+1],
        [+1,-1,-1, -1,-1,+1, -1,+1,+1, +1,+1,-1],
        [-1,-1,-1, +1,-1,+1, +1,+1,+1, -1,+1,-1],
        [+1,-1,+1, -1,-1,-1, -1,+1,-1, +1,+1,+1],
],dtype = np.float32).reshape(4,4,3)

FACES = [
    ( 0, 1, 0), #up
    ( 0,-1, 0), #down
    (-1, 0, 0), #left
    ( 1, 0, 0), #right
    ( 0, 0, 1), #forward
    ( 0, 0,-1), #back
]

# Side tags in the same order as FACES and the cube tables above.
TOP = 'TOP'
BOTTOM = 'BOTTOM'
LEFT = 'LEFT'
RIGHT = 'RIGHT'
FRONT = 'FRONT'
BACK = 'BACK'
SIDES = (TOP, BOTTOM, LEFT, RIGHT, FRONT, BACK)
SIDE_NORMALS = dict(zip(SIDES, FACES))


def tex_coord(x=0, y=0, n=1):
    """ Return the four corners of a texture square as (u, v) pairs.

    """
    m = 1.0 / n
    dx = x * m
    dy = y * m
    return [(dx, dy), (dx + m, dy), (dx + m, dy + m), (dx, dy + m)]


class Transform(object):
    '''
    4x4 affine transform applied to quad vertices before they are added to a mesh.
    Like the recipes that use it, translate/rotate/scale overwrite the matrix and
    multiply composes two transforms (self applied after other).
    '''
    def __init__(self, matrix=None):
        if matrix is None:
            matrix = np.identity(4, dtype=np.float32)
        self.matrix = np.asarray(matrix, dtype=np.float32)

    def identity(self):
        self.matrix = np.identity(4, dtype=np.float32)
        return self

    def translate(self, x, y, z):
        self.identity()
        self.matrix[:3, 3] = (x, y, z)
        return self

    def scale(self, x, y, z):
        self.identity()
        self.matrix[0, 0] = x
        self.matrix[1, 1] = y
        self.matrix[2, 2] = z
        return self

    def rotate(self, ax, ay, az):
        """Rotation in degrees about x, then y, then z."""
        def cs(a):
            r = math.radians(a)
            # snap so right angles give exact 0/1 entries
            return round(math.cos(r), 12), round(math.sin(r), 12)
        cx, sx = cs(ax)
        cy, sy = cs(ay)
        cz, sz = cs(az)
        rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
        ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
        rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
        self.identity()
        self.matrix[:3, :3] = (rz @ ry @ rx).astype(np.float32)
        return self

    def multiply(self, other):
        if isinstance(other, Transform):
            return Transform(self.matrix @ other.matrix)
        return self.apply(other)

    def apply(self, vertices):
        v = np.asarray(vertices, dtype=np.float32).reshape(-1, 3)
        return (v @ self.matrix[:3, :3].T + self.matrix[:3, 3]).astype(np.float32)


def as_vertices(vertices):
    """Return quad vertices as a (4, 3) float32 array."""
    v = np.array(vertices, dtype=np.float32).reshape(-1, 3)
    if v.shape != (4, 3):
        raise ValueError(f"quad needs 4 vertices, got {v.shape[0]}")
    return v


def vertex_key(vertex):
    """Exact identity of a vertex: the float32 bit pattern (negative zero folded to zero)."""
    v = np.asarray(vertex, dtype=np.float32) + np.float32(0.0)
    return v.tobytes()


def is_boundary_vertex(vertex, chunk_size=CHUNK_SIZE):
    """True when x or z lies on a chunk edge plane (coordinate +-0.5 a multiple of chunk_size)."""
    x = float(vertex[0])
    z = float(vertex[2])
    return ((x - 0.5) % chunk_size == 0 or (x + 0.5) % chunk_size == 0 or
            (z - 0.5) % chunk_size == 0 or (z + 0.5) % chunk_size == 0)


def quad_normal(vertices):
    """Unit normal of a quad from the cross product of its diagonals."""
    v = np.asarray(vertices, dtype=np.float64).reshape(4, 3)
    n = np.cross(v[2] - v[0], v[3] - v[1])
    length = np.linalg.norm(n)
    if length < 1e-12:
        return (0.0, 1.0, 0.0)
    n = n / length
    return tuple(float(round(a, 6)) + 0.0 for a in n)


def normalize(position):
    """ Accepts `position` of arbitrary precision and returns the block
    containing that position.

    """
    x, y, z = position
    x, y, z = (int(round(x)), int(round(y)), int(round(z)))
    return (x, y, z)


def chunkify(position):
    """ Returns the (chunk_x, chunk_z) pair of the chunk containing `position`.

    """
    x, y, z = normalize(position)
    return (x // CHUNK_SIZE, z // CHUNK_SIZE)


def chunk_extent(chunk_x, chunk_z):
    """Half-open block ranges (xs, xe, zs, ze) covered by a chunk."""
    xs = chunk_x * CHUNK_SIZE
    zs = chunk_z * CHUNK_SIZE
    return xs, xs + CHUNK_SIZE, zs, zs + CHUNK_SIZE
