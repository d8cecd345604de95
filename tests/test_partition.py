import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from CutCAM.common.geom import PathPoint
from CutCAM.common.partition import *
from CutCAM.common.errors import PartitionError

def pts(coords):
    return [PathPoint(x, y) for x, y in coords]

plus = pts([(10, 0), (20, 0), (20, 10), (30, 10), (30, 20), (20, 20), (20, 30), (10, 30), (10, 20), (0, 20), (0, 10), (10, 10)])

class PartitionTest(unittest.TestCase):
    def testPredicates(self):
        a, b, c = PathPoint(0, 0), PathPoint(10, 0), PathPoint(10, 10)
        self.assertTrue(is_convex(a, b, c))
        self.assertFalse(is_convex(c, b, a))
        self.assertTrue(is_reflex(c, b, a))
        self.assertTrue(is_inside(a, b, c, PathPoint(8, 2)))
        self.assertFalse(is_inside(a, b, c, PathPoint(2, 8)))
        self.assertEqual(signed_area(pts([(0, 0), (10, 0), (10, 10), (0, 10)])), 100)
        self.assertEqual(signed_area(pts([(0, 10), (10, 10), (10, 0), (0, 0)])), -100)
        self.assertTrue(is_convex_polygon(pts([(0, 0), (10, 0), (10, 10), (0, 10)])))
        self.assertFalse(is_convex_polygon(plus))

    def testTriangulate(self):
        tris = triangulate(plus)
        self.assertEqual(len(tris), 10)
        self.assertEqual(sum([signed_area(t) for t in tris]), 500)
        for t in tris:
            self.assertTrue(signed_area(t) > 0)
        # Clockwise input gives the same result
        self.assertEqual(len(triangulate(list(reversed(plus)))), 10)

    def testConvexPartition(self):
        parts = convex_partition(plus)
        # Four arms around the centre square
        self.assertEqual(len(parts), 5)
        self.assertEqual([signed_area(p) for p in parts], [100] * 5)
        self.assertEqual(parts[2], pts([(10, 10), (20, 10), (20, 20), (10, 20)]))
        self.assertEqual(sum([signed_area(p) for p in parts]), 500)
        for p in parts:
            self.assertTrue(is_convex_polygon(p))
        square = pts([(0, 0), (10, 0), (10, 10), (0, 10)])
        self.assertEqual(convex_partition(square), [square])
        lshape = pts([(0, 0), (20, 0), (20, 10), (10, 10), (10, 20), (0, 20)])
        parts = convex_partition(lshape)
        self.assertEqual(parts, [pts([(0, 0), (20, 0), (20, 10), (10, 10)]), pts([(0, 20), (0, 0), (10, 10), (10, 20)])])

    def testDegenerate(self):
        self.assertRaises(PartitionError, lambda: triangulate(pts([(0, 0), (10, 0)])))
        self.assertRaises(PartitionError, lambda: convex_partition([]))
        self.assertEqual(len(triangulate(pts([(0, 0), (10, 0), (0, 10)]))), 1)

if __name__ == '__main__':
    unittest.main()
