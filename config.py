# Size of chunks used to split the world for scanning and flushing.
CHUNK_SIZE = 16 #width and depth (x and z)
CHUNK_HEIGHT = 256 #height of world (y)

# Export workers scanning chunks in parallel.
EXPORT_WORKERS = 4

# "shared": one aggregator, chunks committed and flushed in order (welded seams).
# "sharded": one aggregator per worker, concatenated once at the end (no weld).
EXPORT_STRATEGY = "shared"

# Max chunks scanned but not yet committed (bounds memory for the shared strategy).
EXPORT_MAX_INFLIGHT = 8

# Keep chunk-edge vertices between flushes so neighbouring chunks reuse them.
WELD_CHUNK_SEAMS = True

# Write a separate "g <name>_<material>" group for each material run.
OBJ_PER_MATERIAL = False

# Output transform applied while writing vertices (never to stored vertices).
EXPORT_SCALE = 1.0
EXPORT_OFFSET = (0, 0, 0)

# Object name written after the mtllib header.
EXPORT_OBJECT_NAME = "minecraft"

# Default diffuse colour for materials with no entry in the block colour table.
DEFAULT_MATERIAL_COLOR = [200, 200, 200]

# Enable ANSI colors in logs.
LOG_COLOR = True

# Drop log lines below this level (DEBUG, INFO, WARN, ERROR).
LOG_LEVEL = "INFO"

# Append log lines to this file as well as stdout (None disables).
LOG_FILE_PATH = None

# Log each chunk as it is scanned and committed.
LOG_CHUNKS = False
