import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from math import pi, sqrt
from CutCAM.common.geom import PathPoint
from CutCAM.common.ellarc import *
from CutCAM.common.errors import ArcError, InvalidParameterError

class EllArcTest(unittest.TestCase):
    def assertNear(self, v1, v2, places=6, msg=None):
        self.assertAlmostEqual(v1, v2, places=places, msg=msg)

    def assertArc(self, arc, cx, cy, theta, delta):
        self.assertNear(arc.c.x, cx)
        self.assertNear(arc.c.y, cy)
        self.assertNear(arc.theta, theta)
        self.assertNear(arc.delta, delta)

    def testEndpointToCentre(self):
        p1, p2 = PathPoint(0, 0), PathPoint(10, 10)
        self.assertArc(endpoint_to_centre(p1, p2, 10, 10, 0, False, False), 10, 0, pi, -pi / 2)
        self.assertArc(endpoint_to_centre(p1, p2, 10, 10, 0, False, True), 0, 10, 3 * pi / 2, pi / 2)
        self.assertArc(endpoint_to_centre(p1, p2, 10, 10, 0, True, False), 0, 10, 3 * pi / 2, -3 * pi / 2)
        self.assertArc(endpoint_to_centre(p1, p2, 10, 10, 0, True, True), 10, 0, pi, 3 * pi / 2)

    def testRadiusScaling(self):
        # Radius too small to span the endpoints, scaled up to a half circle
        arc = endpoint_to_centre(PathPoint(0, 0), PathPoint(20, 0), 5, 5, 0, False, True)
        self.assertNear(arc.rx, 10)
        self.assertNear(arc.ry, 10)
        self.assertNear(arc.c.x, 10)
        self.assertNear(arc.c.y, 0)
        self.assertNear(abs(arc.delta), pi)

    def testZeroRadius(self):
        self.assertRaises(ArcError, lambda: endpoint_to_centre(PathPoint(0, 0), PathPoint(10, 10), 0, 10, 0, False, False))
        self.assertRaises(InvalidParameterError, lambda: arc_to_beziers(PathPoint(0, 0), 10, 0, 0, False, False, PathPoint(10, 10)))

    def testSamePoint(self):
        self.assertEqual(arc_to_beziers(PathPoint(5, 5), 10, 10, 0, False, False, PathPoint(5, 5)), [])
        self.assertEqual(arc_to_points(PathPoint(5, 5), 10, 10, 0, False, False, PathPoint(5, 5)), [PathPoint(5, 5)])

    def testBeziers(self):
        p1, p2 = PathPoint(0, 0), PathPoint(10, 10)
        curves = arc_to_beziers(p1, 10, 10, 0, False, False, p2)
        # Quarter circle, segments are limited to pi/4
        self.assertEqual(len(curves), 2)
        self.assertNear(curves[0][0].x, 0)
        self.assertNear(curves[0][0].y, 0)
        self.assertNear(curves[-1][3].x, 10)
        self.assertNear(curves[-1][3].y, 10)
        self.assertNear(curves[0][3].x, curves[1][0].x)
        self.assertNear(curves[0][3].y, curves[1][0].y)
        self.assertEqual(len(arc_to_beziers(p1, 10, 10, 0, True, False, p2)), 6)
        # Points of the approximation stay close to the circle centred at (10, 0)
        for c in curves:
            for pt in cubic_points(*c, 8):
                self.assertNear(sqrt((pt.x - 10) ** 2 + pt.y ** 2), 10, places=3)

    def testRotatedEllipse(self):
        p1, p2 = PathPoint(0, 0), PathPoint(0, 20)
        pts = arc_to_points(p1, 10, 5, pi / 2, False, True, p2)
        self.assertEqual(pts[0], p1)
        self.assertEqual(pts[-1], p2)
        # Half of an ellipse with its major axis along Y
        self.assertTrue(max([abs(pt.x) for pt in pts]) > 4.9)
        self.assertTrue(max([abs(pt.x) for pt in pts]) < 5.1)

    def testCubicPoints(self):
        pts = cubic_points(PathPoint(0, 0), PathPoint(0, 10), PathPoint(10, 10), PathPoint(10, 0), 4)
        self.assertEqual(len(pts), 5)
        self.assertNear(pts[0].x, 0)
        self.assertNear(pts[2].x, 5)
        self.assertNear(pts[2].y, 7.5)
        self.assertNear(pts[4].x, 10)

if __name__ == '__main__':
    unittest.main()
