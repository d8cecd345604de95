from math import *
from CutCAM.common.geom import PathPoint, GeometrySettings
from CutCAM.common.errors import ArcError

# Approximation of SVG elliptical arcs by cubic Bezier curves, see
# https://www.w3.org/TR/SVG2/implnote.html#ArcImplementationNotes

def rotate(x, y, angle):
    cosv, sinv = cos(angle), sin(angle)
    return x * cosv - y * sinv, x * sinv + y * cosv

class CentreArc(object):
    def __init__(self, c, rx, ry, theta, delta):
        self.c = c
        self.rx = rx
        self.ry = ry
        self.theta = theta
        self.delta = delta
    def __repr__(self):
        return f"CentreArc({self.c!r}, {self.rx}, {self.ry}, {self.theta}, {self.delta})"

def endpoint_to_centre(p1, p2, rx, ry, x_angle, large_arc, sweep):
    """Convert the endpoint parameterization of an arc into centre, start
    angle and sweep angle (SVG 2, B.2.4). Radii too small to span the
    endpoints are scaled up uniformly."""
    rx, ry = abs(rx), abs(ry)
    if rx == 0 or ry == 0:
        raise ArcError(f"Elliptical arc with zero radius ({rx}, {ry})")
    # Step 1
    hx, hy = (p1.x - p2.x) / 2, (p1.y - p2.y) / 2
    mx, my = (p1.x + p2.x) / 2, (p1.y + p2.y) / 2
    x1, y1 = rotate(hx, hy, -x_angle)
    # Step 2, with out-of-range radii correction
    cr = (x1 * x1) / (rx * rx) + (y1 * y1) / (ry * ry)
    if cr > 1:
        s = sqrt(cr)
        rx *= s
        ry *= s
    rxs, rys = rx * rx, ry * ry
    denominator = rxs * y1 * y1 + rys * x1 * x1
    if denominator == 0:
        raise ArcError("Elliptical arc endpoints coincide")
    # max() absorbs rounding errors when the radii were just scaled up
    root = sqrt(max(0, (rxs * rys - denominator) / denominator))
    if large_arc == sweep:
        root = -root
    cxp, cyp = root * rx * y1 / ry, -root * ry * x1 / rx
    # Step 3
    cx, cy = rotate(cxp, cyp, x_angle)
    c = PathPoint(cx + mx, cy + my)
    # Step 4
    ux, uy = (x1 - cxp) / rx, (y1 - cyp) / ry
    vx, vy = (-x1 - cxp) / rx, (-y1 - cyp) / ry
    theta = atan2(uy, ux) % (2 * pi)
    delta = (atan2(vy, vx) - atan2(uy, ux)) % (2 * pi)
    if not sweep and delta > 0:
        delta -= 2 * pi
    return CentreArc(c, rx, ry, theta, delta)

def arc_to_bezier(arc, theta, delta, x_angle):
    """Control points p1, q1, q2, p2 of a cubic approximating the part of
    the arc from angle theta spanning delta."""
    def E(angle):
        x, y = rotate(arc.rx * cos(angle), arc.ry * sin(angle), x_angle)
        return PathPoint(arc.c.x + x, arc.c.y + y)
    def Ed(angle):
        return rotate(-arc.rx * sin(angle), arc.ry * cos(angle), x_angle)
    t = tan(delta / 2)
    alpha = sin(delta) * (sqrt(4 + 3 * t * t) - 1) / 3
    p1 = E(theta)
    p2 = E(theta + delta)
    d1x, d1y = Ed(theta)
    d2x, d2y = Ed(theta + delta)
    q1 = PathPoint(p1.x + alpha * d1x, p1.y + alpha * d1y)
    q2 = PathPoint(p2.x - alpha * d2x, p2.y - alpha * d2y)
    return (p1, q1, q2, p2)

def arc_to_beziers(p1, rx, ry, x_angle, large_arc, sweep, p2):
    """Split the arc into segments no wider than max_arc_segment_angle and
    return one cubic (4 control points) per segment."""
    if p1 == p2:
        # SVG: an arc with identical endpoints is omitted
        return []
    arc = endpoint_to_centre(p1, p2, rx, ry, x_angle, large_arc, sweep)
    max_angle = GeometrySettings.max_arc_segment_angle
    steps = max(1, int(ceil(abs(arc.delta) / max_angle - 1e-9)))
    step = arc.delta / steps
    return [arc_to_bezier(arc, arc.theta + i * step, step, x_angle) for i in range(steps)]

def cubic_points(p0, c1, c2, p3, segments):
    res = []
    for i in range(segments + 1):
        t = i / segments
        mt = 1 - t
        a, b, c, d = mt * mt * mt, 3 * mt * mt * t, 3 * mt * t * t, t * t * t
        res.append(PathPoint(a * p0.x + b * c1.x + c * c2.x + d * p3.x, a * p0.y + b * c1.y + c * c2.y + d * p3.y))
    return res

def arc_to_points(p1, rx, ry, x_angle, large_arc, sweep, p2, segments=4):
    """Linearize an elliptical arc. The first point is p1, the last is p2."""
    res = [p1]
    for curve in arc_to_beziers(p1, rx, ry, x_angle, large_arc, sweep, p2):
        res += cubic_points(*curve, segments)[1:]
    if len(res) > 1:
        res[-1] = p2
    return res
