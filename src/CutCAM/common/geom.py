from pyclipper import *
from math import *
import logging

logger = logging.getLogger(__name__)

class GeometrySettings:
    # Integer units per millimetre. All engine geometry lives in this space.
    RESOLUTION = 100000.0
    INCH = 25.4
    # Tolerances below are in millimetres, see mm_to_int
    clean_poly_dist = 0.001
    clean_path_dist = 0.0001
    arc_tolerance = 0.06
    miter_limit = 2
    max_arc_segment_angle = pi / 4
    fillMode = PFT_EVENODD

def mm_to_int(value):
    return value * GeometrySettings.RESOLUTION

def int_to_mm(value):
    return value / GeometrySettings.RESOLUTION

def PtsToInts(points):
    return [(round(p.x), round(p.y)) for p in points]

def PtsFromInts(points):
    return [PathPoint(x, y) for x, y in points]

class PathPoint(object):
    def __init__(self, x, y, z=None):
        self.x = x
        self.y = y
        self.z = z
    def __repr__(self):
        if self.z is not None:
            return f"PathPoint({self.x},{self.y},{self.z})"
        return f"PathPoint({self.x},{self.y})"
    def as_tuple(self):
        if self.z is not None:
            return (self.x, self.y, self.z)
        return (self.x, self.y)
    def dist(self, other):
        dx = other.x - self.x
        dy = other.y - self.y
        return sqrt(dx * dx + dy * dy)
    def dist2(self, other):
        dx = other.x - self.x
        dy = other.y - self.y
        return dx * dx + dy * dy
    def with_z(self, z):
        return PathPoint(self.x, self.y, z)
    # Z does not take part in comparisons, paths are matched in the XY plane
    def __eq__(self, other):
        return self.x == other.x and self.y == other.y
    def __ne__(self, other):
        return self.x != other.x or self.y != other.y
    def __hash__(self):
        return (self.x, self.y).__hash__()

class MinMax(object):
    def __init__(self):
        self.min = None
        self.max = None
    def feed(self, value):
        if self.min is None:
            self.min = self.max = value
        else:
            self.min = min(self.min, value)
            self.max = max(self.max, value)

class Path(object):
    """Ordered list of points. A closed path is a polygon: its last point
    connects back to the first one without repeating it in the node list."""
    def __init__(self, nodes, closed):
        self.nodes = nodes
        self.closed = closed
    def __eq__(self, other):
        return other is not None and self.nodes == other.nodes and self.closed == other.closed
    def __repr__(self):
        return f"Path([{','.join(repr(node) for node in self.nodes)}], {repr(self.closed)})"
    def clone(self):
        return Path(list(self.nodes), self.closed)
    # Nodes with the closing vertex repeated at the end, for walking the edges
    def walk_nodes(self):
        if self.closed and self.nodes:
            return self.nodes + self.nodes[0:1]
        return list(self.nodes)
    def length(self):
        nodes = self.walk_nodes()
        return sum([nodes[i - 1].dist(nodes[i]) for i in range(1, len(nodes))])
    perimeter = length
    def reverse(self):
        return Path(list(reversed(self.nodes)), self.closed)
    def bounds(self):
        xcoords = MinMax()
        ycoords = MinMax()
        for p in self.nodes:
            xcoords.feed(p.x)
            ycoords.feed(p.y)
        return (xcoords.min, ycoords.min, xcoords.max, ycoords.max)
    def orientation(self):
        return Orientation(PtsToInts(self.nodes))
    def area(self):
        return Area(PtsToInts(self.nodes))
    # Index and squared distance of the nearest vertex, first one wins on a tie
    def closest_vertex(self, pt):
        best = None
        for i, p in enumerate(self.nodes):
            d2 = pt.dist2(p)
            if best is None or d2 < best[1]:
                best = (i, d2)
        return best
    def make_first(self, i):
        assert self.closed
        return Path(self.nodes[i:] + self.nodes[:i], True)
    def make_last(self, i):
        return self.make_first((i + 1) % len(self.nodes))
    def unduplicate(self):
        nodes = [p for i, p in enumerate(self.nodes) if i == 0 or p != self.nodes[i - 1]]
        if self.closed:
            while len(nodes) > 1 and nodes[0] == nodes[-1]:
                nodes.pop()
        return Path(nodes, self.closed)
    # -1: outside, 0: on the edge, 1: inside
    def inside(self, pt):
        if not self.closed or len(self.nodes) < 3:
            return -1
        res = PointInPolygon((round(pt.x), round(pt.y)), PtsToInts(self.nodes))
        if res == -1:
            return 0
        return 1 if res else -1


def weighted(p1, p2, alpha):
    z = None
    if p1.z is not None and p2.z is not None:
        z = p1.z + (p2.z - p1.z) * alpha
    return PathPoint(p1.x + (p2.x - p1.x) * alpha, p1.y + (p2.y - p1.y) * alpha, z)

def max_bounds(*b):
    b = [i for i in b if i is not None and i[0] is not None]
    if not b:
        return None
    sx, sy, ex, ey = b[0]
    for b2 in b[1:]:
        sx2, sy2, ex2, ey2 = b2
        sx = min(sx, sx2)
        sy = min(sy, sy2)
        ex = max(ex, ex2)
        ey = max(ey, ey2)
    return sx, sy, ex, ey

def paths_bounds(paths):
    return max_bounds(*[p.bounds() for p in paths if p.nodes])

def closed_paths(paths):
    return [p for p in paths if p.closed]

def open_paths(paths):
    return [p for p in paths if not p.closed]

def _add_paths(pc, paths, poly_type, closed=True):
    added = 0
    for path in paths:
        try:
            pc.AddPath(PtsToInts(path.nodes), poly_type, closed)
            added += 1
        except ClipperException:
            # Degenerate (too few or collinear points), nothing to clip
            logger.debug("Skipping degenerate path with %d points", len(path.nodes))
    return added

def offset(paths, amount, join_type=JT_MITER, end_type=ET_CLOSEDPOLYGON):
    """Grow (positive amount) or shrink (negative amount) the closed paths.
    Open paths are passed through unchanged, after the offset results."""
    pc = PyclipperOffset(GeometrySettings.miter_limit, mm_to_int(GeometrySettings.arc_tolerance))
    added = 0
    for path in closed_paths(paths):
        if len(path.nodes) < 3:
            continue
        pc.AddPath(PtsToInts(path.nodes), join_type, end_type)
        added += 1
    res = pc.Execute(amount) if added else []
    return [Path(PtsFromInts(i), True) for i in res] + [p.clone() for p in open_paths(paths)]

def offset_regions(paths, amount, join_type=JT_MITER):
    """Offset the closed paths like offset() does, keeping track of which
    result is a hole in which area. Returns a list of (outline, holes)
    pairs. An island inside a hole is an area of its own."""
    pc = PyclipperOffset(GeometrySettings.miter_limit, mm_to_int(GeometrySettings.arc_tolerance))
    added = 0
    for path in closed_paths(paths):
        if len(path.nodes) < 3:
            continue
        pc.AddPath(PtsToInts(path.nodes), join_type, ET_CLOSEDPOLYGON)
        added += 1
    if not added:
        return []
    res = []
    def add_outlines(node):
        for outer in node.Childs:
            holes = [Path(PtsFromInts(hole.Contour), True) for hole in outer.Childs]
            res.append((Path(PtsFromInts(outer.Contour), True), holes))
            for hole in outer.Childs:
                add_outlines(hole)
    add_outlines(pc.Execute2(amount))
    return res

def run_clipper_simple(operation, subject_paths=[], clipper_paths=[], fillMode=None):
    if fillMode is None:
        fillMode = GeometrySettings.fillMode
    pc = Pyclipper()
    added = _add_paths(pc, closed_paths(subject_paths), PT_SUBJECT)
    added += _add_paths(pc, closed_paths(clipper_paths), PT_CLIP)
    if not added:
        return []
    try:
        res = pc.Execute(operation, fillMode, fillMode)
    except ClipperException:
        res = None
    if not res:
        return []
    return [Path(PtsFromInts(i), True) for i in res]

def run_clipper_checkpath(operation, subject_paths=[], clipper_paths=[], fillMode=None):
    """Clip open subject paths against closed clipper polygons, returning
    the resulting open paths as lists of integer tuples."""
    if fillMode is None:
        fillMode = GeometrySettings.fillMode
    pc = Pyclipper()
    if not _add_paths(pc, subject_paths, PT_SUBJECT, False):
        return []
    if not _add_paths(pc, closed_paths(clipper_paths), PT_CLIP):
        return []
    tree = pc.Execute2(operation, fillMode, fillMode)
    return [[tuple(p) for p in path] for path in OpenPathsFromPolyTree(tree)]

def union(paths1, paths2):
    return run_clipper_simple(CT_UNION, paths1, paths2, PFT_EVENODD)

def difference(paths1, paths2):
    return run_clipper_simple(CT_DIFFERENCE, paths1, paths2, PFT_EVENODD)

def intersection(paths1, paths2):
    return run_clipper_simple(CT_INTERSECTION, paths1, paths2, PFT_EVENODD)

def xor(paths1, paths2):
    return run_clipper_simple(CT_XOR, paths1, paths2, PFT_EVENODD)

def simplify_and_clean(paths, fill_rule=PFT_EVENODD):
    """Remove near-duplicate vertices. Closed paths also get their
    self-intersections resolved according to fill_rule, open paths only
    lose adjacent points closer than the clean distance."""
    res = []
    poly_dist = mm_to_int(GeometrySettings.clean_poly_dist)
    path_dist2 = mm_to_int(GeometrySettings.clean_path_dist) ** 2
    for path in paths:
        if path.closed:
            pts = CleanPolygon(PtsToInts(path.nodes), poly_dist)
            if len(pts) < 3:
                continue
            for poly in SimplifyPolygon(pts, fill_rule):
                if len(poly) >= 3:
                    res.append(Path(PtsFromInts(poly), True))
        else:
            nodes = []
            for p in path.nodes:
                if not nodes or nodes[-1].dist2(p) >= path_dist2:
                    nodes.append(p)
            if len(nodes) >= 2:
                res.append(Path(nodes, False))
    return res

def crosses(paths, p1, p2):
    """Check whether travelling from p1 to p2 in a straight line leaves the
    area enclosed by the closed paths. A zero-length move never crosses."""
    if p1 == p2:
        return False
    segment = Path([p1, p2], False)
    res = run_clipper_checkpath(CT_INTERSECTION, [segment], paths, PFT_EVENODD)
    if len(res) == 1 and len(res[0]) == 2:
        a, b = (round(p1.x), round(p1.y)), (round(p2.x), round(p2.y))
        if (res[0][0] == a and res[0][1] == b) or (res[0][0] == b and res[0][1] == a):
            return False
    return True

def closest_vertex(paths, pt, closed_match):
    """Find the nearest vertex among the paths whose closed flag equals
    closed_match. Returns (path index, vertex index, squared distance) or
    None if there are no such paths."""
    best = None
    for i, path in enumerate(paths):
        if path.closed != closed_match or not path.nodes:
            continue
        vi, d2 = path.closest_vertex(pt)
        if best is None or d2 < best[2]:
            best = (i, vi, d2)
    return best

def _merge_closed_path(result, path, clip):
    best = None
    for i, pt in enumerate(path.nodes):
        cv = closest_vertex(result, pt, True)
        if cv is not None and (best is None or cv[2] < best[2]):
            best = cv + (i, )
    if best is None:
        result.append(path)
        return
    pidx, vidx, d2, closest = best
    p1 = path.nodes[closest]
    p2 = result[pidx].nodes[vidx]
    if clip is not None and crosses(clip, p1, p2):
        result.insert(0, path)
        return
    existing = result[pidx].make_last(vidx).nodes
    n = len(path.nodes)
    nodes = existing[-1:] + existing + [path.nodes[(closest + k) % n] for k in range(n + 1)]
    # A stitched path is a travel path, never a polygon
    result[pidx] = Path(nodes, False)

def _merge_open_path(result, path):
    a, b = path.nodes[0], path.nodes[-1]
    for i, tpath in enumerate(result):
        if tpath.closed:
            continue
        ta, tb = tpath.nodes[0], tpath.nodes[-1]
        if a == tb:
            result[i] = Path(tpath.nodes + path.nodes[1:], False)
        elif b == ta:
            result[i] = Path(path.nodes[:-1] + tpath.nodes, False)
        elif a == ta:
            result[i] = Path(path.reverse().nodes[:-1] + tpath.nodes, False)
        elif b == tb:
            result[i] = Path(tpath.nodes + path.reverse().nodes[1:], False)
        else:
            continue
        return
    result.append(path)

def merge_paths(target, incoming, clip=None):
    """Greedy nearest-vertex stitching of incoming paths onto target.

    Closed paths are spliced onto the closest existing closed path unless
    the joining move crosses the clip boundary, open paths are joined only
    where their endpoints coincide. Returns a new list, inputs are left
    untouched."""
    result = [p.clone() for p in target]
    for path in incoming:
        if not path.nodes:
            continue
        if path.closed:
            _merge_closed_path(result, path.clone(), clip)
        else:
            _merge_open_path(result, path.clone())
    return result
