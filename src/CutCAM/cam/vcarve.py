from CutCAM.common.errors import UnsupportedOperationError

# V-bit strategies need a 3D offset of the outline (depth follows the
# distance to the nearest edge), which the 2D engine does not provide.

def vcarve(geometry, tool, *args, **kwargs):
    raise UnsupportedOperationError("V Carve is not supported")

def vpocket(geometry, tool, *args, **kwargs):
    raise UnsupportedOperationError("V Pocket is not supported")
