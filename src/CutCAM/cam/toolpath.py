from CutCAM.common.geom import *

class Toolpath(object):
    """A path the cutter follows. safe_to_close means the tool may travel
    from the end of the path back to its start without retracting.
    has_z means the vertices carry precomputed depths (drilling), which the
    generator uses instead of stepping down pass by pass."""
    def __init__(self, path, safe_to_close=False, has_z=False):
        assert isinstance(path, Path)
        self.path = path
        self.safe_to_close = safe_to_close
        self.has_z = has_z
    def points(self):
        return self.path.walk_nodes()
    def __repr__(self):
        return f"Toolpath({self.path!r}, safe_to_close={self.safe_to_close}, has_z={self.has_z})"

class Toolpaths(object):
    def __init__(self, toolpaths):
        self.toolpaths = toolpaths
    def __iter__(self):
        return iter(self.toolpaths)
    def __len__(self):
        return len(self.toolpaths)
    def __getitem__(self, index):
        return self.toolpaths[index]
    def paths(self):
        return [tp.path for tp in self.toolpaths]
    def bounds(self):
        return paths_bounds(self.paths())

def to_toolpaths(paths, bounds=None):
    """Wrap stitched paths. Without bounds every path is safe to close,
    otherwise only those whose closing move stays inside the bounds."""
    res = []
    for path in paths:
        if not path.nodes:
            continue
        if bounds is None:
            safe = True
        else:
            nodes = path.walk_nodes()
            safe = not crosses(bounds, nodes[0], nodes[-1])
        res.append(Toolpath(path, safe_to_close=safe))
    return Toolpaths(res)

def segment_intersection(a, b, c, d):
    """Parameter t along a->b where it intersects c->d, None if they don't
    intersect or are parallel."""
    rx, ry = b.x - a.x, b.y - a.y
    sx, sy = d.x - c.x, d.y - c.y
    denom = rx * sy - ry * sx
    if denom == 0:
        return None
    qx, qy = c.x - a.x, c.y - a.y
    t = (qx * sy - qy * sx) / denom
    u = (qx * ry - qy * rx) / denom
    if 0 <= t <= 1 and 0 <= u <= 1:
        return t
    return None

def _edge_splits(a, b, tabs):
    ts = set()
    for tab in tabs:
        nodes = tab.walk_nodes()
        for i in range(1, len(nodes)):
            t = segment_intersection(a, b, nodes[i - 1], nodes[i])
            if t is not None and 0 < t < 1:
                ts.add(t)
    return sorted(ts)

def _in_tabs(piece, tabs):
    for i in range(1, len(piece)):
        if piece[i - 1] != piece[i]:
            mid = weighted(piece[i - 1], piece[i], 0.5)
            return any([tab.inside(mid) == 1 for tab in tabs])
    return False

def separate_tabs(path, tabs):
    """Split a toolpath where it enters or leaves tab polygons.

    The result alternates between pieces outside the tabs (even indexes) and
    pieces over the tabs (odd indexes). If the toolpath starts over a tab, the
    first piece is an empty path, so that the parity rule still holds."""
    tabs = [t for t in tabs if t.closed and len(t.nodes) >= 3]
    if not tabs:
        return [path]
    nodes = path.walk_nodes()
    if len(nodes) < 2:
        return [path]
    pieces = []
    current = [nodes[0]]
    for i in range(1, len(nodes)):
        a, b = nodes[i - 1], nodes[i]
        if a == b:
            continue
        for t in _edge_splits(a, b, tabs):
            p = weighted(a, b, t)
            p = PathPoint(round(p.x), round(p.y), p.z)
            if p == current[-1]:
                continue
            current.append(p)
            pieces.append(current)
            current = [p]
        if b != current[-1]:
            current.append(b)
        # Vertex exactly on a tab edge, the path may enter or leave the tab here
        if i < len(nodes) - 1 and len(current) >= 2 and any([tab.inside(b) == 0 for tab in tabs]):
            pieces.append(current)
            current = [b]
    pieces.append(current)
    pieces = [p for p in pieces if len(p) >= 2]
    result = []
    last_inside = None
    for piece in pieces:
        inside = _in_tabs(piece, tabs)
        if inside == last_inside:
            result[-1] += piece[1:]
        else:
            if not result and inside:
                result.append([])
            result.append(list(piece))
        last_inside = inside
    return [Path(p, False) for p in result]
