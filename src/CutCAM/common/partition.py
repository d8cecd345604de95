from math import *
from CutCAM.common.geom import PathPoint
from CutCAM.common.errors import PartitionError

# Convex partitioning: ear clipping followed by Hertel-Mehlhorn merging.
# Polygons are lists of points, counter-clockwise in a Y-up system.

def cross(p1, p2, p3):
    return (p3.y - p1.y) * (p2.x - p1.x) - (p3.x - p1.x) * (p2.y - p1.y)

def is_convex(p1, p2, p3):
    return cross(p1, p2, p3) > 0

def is_reflex(p1, p2, p3):
    return cross(p1, p2, p3) < 0

def is_inside(p1, p2, p3, p):
    return not (is_convex(p1, p, p2) or is_convex(p2, p, p3) or is_convex(p3, p, p1))

def signed_area(points):
    n = len(points)
    return sum([points[i].x * points[(i + 1) % n].y - points[(i + 1) % n].x * points[i].y for i in range(n)]) / 2

def ccw(points):
    return list(points) if signed_area(points) >= 0 else list(reversed(points))

def is_convex_polygon(points):
    n = len(points)
    return not any([is_reflex(points[i], points[(i + 1) % n], points[(i + 2) % n]) for i in range(n)])

class PartitionVertex(object):
    def __init__(self, p):
        self.p = p
        self.is_active = True
        self.is_ear = False
        self.is_convex = False
        self.angle = 0
        self.previous = None
        self.next = None
    def update(self, vertices):
        prev, p, nxt = self.previous.p, self.p, self.next.p
        self.is_convex = is_convex(prev, p, nxt)
        # Cosine of the angle at this vertex, the sharpest ear has the largest value
        v1x, v1y = prev.x - p.x, prev.y - p.y
        v3x, v3y = nxt.x - p.x, nxt.y - p.y
        l1 = sqrt(v1x * v1x + v1y * v1y)
        l3 = sqrt(v3x * v3x + v3y * v3y)
        self.angle = (v1x * v3x + v1y * v3y) / (l1 * l3) if l1 and l3 else -1
        self.is_ear = False
        if self.is_convex:
            self.is_ear = True
            for v in vertices:
                if not v.is_active or v.p == p or v.p == prev or v.p == nxt:
                    continue
                if is_inside(prev, p, nxt, v.p):
                    self.is_ear = False
                    break

def triangulate(points):
    """Ear clipping triangulation. Returns a list of triangles (lists of
    three points)."""
    if len(points) < 3:
        raise PartitionError(f"Polygon has too few vertices ({len(points)})")
    points = ccw(points)
    if len(points) == 3:
        return [points]
    nv = len(points)
    vertices = [PartitionVertex(p) for p in points]
    for i, v in enumerate(vertices):
        v.previous = vertices[i - 1]
        v.next = vertices[(i + 1) % nv]
    for v in vertices:
        v.update(vertices)
    triangles = []
    for i in range(nv - 3):
        ear = None
        for v in vertices:
            if v.is_active and v.is_ear and (ear is None or v.angle > ear.angle):
                ear = v
        if ear is None:
            raise PartitionError("Unable to triangulate polygon, no ear found")
        triangles.append([ear.previous.p, ear.p, ear.next.p])
        ear.is_active = False
        ear.previous.next = ear.next
        ear.next.previous = ear.previous
        if i == nv - 4:
            break
        ear.previous.update(vertices)
        ear.next.update(vertices)
    for v in vertices:
        if v.is_active:
            triangles.append([v.previous.p, v.p, v.next.p])
            break
    return triangles

def _find_diagonal(parts, first, d1, d2):
    # Search later parts for the edge d2->d1 (the same diagonal walked backwards)
    for second in range(first + 1, len(parts)):
        poly2 = parts[second]
        n2 = len(poly2)
        for i21 in range(n2):
            i22 = (i21 + 1) % n2
            if poly2[i21] == d2 and poly2[i22] == d1:
                return second, i21, i22
    return None

def convex_partition(points):
    """Split a simple polygon into convex pieces (Hertel-Mehlhorn)."""
    if len(points) < 3:
        raise PartitionError(f"Polygon has too few vertices ({len(points)})")
    points = ccw(points)
    if is_convex_polygon(points):
        return [points]
    parts = triangulate(points)
    first = 0
    while first < len(parts):
        i11 = 0
        while i11 < len(parts[first]):
            poly1 = parts[first]
            n1 = len(poly1)
            i12 = (i11 + 1) % n1
            found = _find_diagonal(parts, first, poly1[i11], poly1[i12])
            if found is None:
                i11 += 1
                continue
            second, i21, i22 = found
            poly2 = parts[second]
            n2 = len(poly2)
            # Both angles created at the diagonal's endpoints must stay convex
            if not is_convex(poly1[i11 - 1], poly1[i11], poly2[(i22 + 1) % n2]):
                i11 += 1
                continue
            if not is_convex(poly2[i21 - 1], poly1[i12], poly1[(i12 + 1) % n1]):
                i11 += 1
                continue
            merged = []
            j = i12
            while j != i11:
                merged.append(poly1[j])
                j = (j + 1) % n1
            j = i22
            while j != i21:
                merged.append(poly2[j])
                j = (j + 1) % n2
            parts[first] = merged
            del parts[second]
            i11 = 0
        first += 1
    return parts
