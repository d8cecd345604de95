import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from CutCAM.common.geom import *
from CutCAM.common.errors import InvalidParameterError
from CutCAM.cam.contour import *

def square(x0, y0, size):
    return Path([PathPoint(x0, y0), PathPoint(x0 + size, y0), PathPoint(x0 + size, y0 + size), PathPoint(x0, y0 + size)], True)

def line(*pts):
    return Path([PathPoint(x, y) for x, y in pts], False)

class OutlineTest(unittest.TestCase):
    def testInsideSinglePass(self):
        tps = outline([square(0, 0, 100)], 10, True, 0, 0, False)
        self.assertEqual(len(tps), 1)
        self.assertTrue(tps[0].path.closed)
        self.assertEqual(tps.bounds(), (5, 5, 95, 95))
        self.assertEqual(inside_outline([square(0, 0, 100)], 10, 10, 0, False).paths(), tps.paths())

    def testOutsideSinglePass(self):
        tps = outline([square(0, 0, 100)], 10, False, 10, 0, False)
        self.assertEqual(len(tps), 1)
        self.assertEqual(tps.bounds(), (-5, -5, 105, 105))
        self.assertEqual(outside_outline([square(0, 0, 100)], 10, 10, 0, False).paths(), tps.paths())

    def testDirection(self):
        inside = outline([square(0, 0, 100)], 10, True, 10, 0, False)[0].path
        inside_climb = outline([square(0, 0, 100)], 10, True, 10, 0, True)[0].path
        outside = outline([square(0, 0, 100)], 10, False, 10, 0, False)[0].path
        outside_climb = outline([square(0, 0, 100)], 10, False, 10, 0, True)[0].path
        self.assertNotEqual(inside.orientation(), inside_climb.orientation())
        self.assertNotEqual(outside.orientation(), outside_climb.orientation())
        # Conventional milling goes the opposite way round inside and outside
        self.assertNotEqual(inside.orientation(), outside.orientation())

    def testWide(self):
        tps = outline([square(0, 0, 100)], 10, True, 30, 0, False)
        self.assertEqual(tps.bounds(), (5, 5, 95, 95))
        nodes = [pt for tp in tps for pt in tp.path.nodes]
        # Innermost pass is width - diameter / 2 away from the edge
        self.assertEqual(min([pt.x for pt in nodes if pt.x > 20]), 25)
        self.assertEqual(sum([len(tp.path.nodes) for tp in tps]), 3 * 4 + 2 * (3 - len(tps)))
        tps = outline([square(0, 0, 100)], 10, False, 30, 0, False)
        self.assertEqual(tps.bounds(), (-25, -25, 125, 125))

    def testPartialPass(self):
        # 10 + 8 covers 18, the rest is a narrower final pass
        tps = outline([square(0, 0, 100)], 10, False, 25, 0.2, False)
        self.assertEqual(tps.bounds(), (-20, -20, 120, 120))

    def testInvalid(self):
        warnings = []
        self.assertEqual(len(outline([line((0, 0), (100, 0))], 10, True, 10, 0, False, warnings)), 0)
        self.assertEqual(len(warnings), 1)
        self.assertRaises(InvalidParameterError, lambda: outline([square(0, 0, 100)], 0, True, 10, 0, False))
        self.assertRaises(InvalidParameterError, lambda: outline([square(0, 0, 100)], 10, True, -1, 0, False))

    def testTooSmall(self):
        warnings = []
        self.assertEqual(len(outline([square(0, 0, 5)], 10, True, 10, 0, False, warnings)), 0)
        self.assertEqual(len(warnings), 1)

class EngraveTest(unittest.TestCase):
    def testClosed(self):
        sq = square(0, 0, 100)
        tps = engrave([sq], True)
        self.assertEqual(len(tps), 1)
        path = tps[0].path
        self.assertFalse(path.closed)
        self.assertEqual(len(path.nodes), 5)
        self.assertEqual(path.nodes[0], path.nodes[-1])
        self.assertEqual(path.nodes[1], PathPoint(100, 0))
        self.assertTrue(tps[0].safe_to_close)
        tps = engrave([sq], False)
        self.assertEqual(tps[0].path.nodes[1], PathPoint(100, 100))
        self.assertTrue(sq.closed)

    def testOpen(self):
        tps = engrave([line((0, 0), (10, 0)), line((10, 0), (20, 0))], True)
        self.assertEqual(len(tps), 1)
        self.assertEqual(tps[0].path.nodes, [PathPoint(0, 0), PathPoint(10, 0), PathPoint(20, 0)])
        self.assertFalse(tps[0].safe_to_close)
        tps = engrave([line((0, 0), (10, 0)), line((30, 0), (20, 0))], False)
        self.assertEqual(len(tps), 2)
        self.assertEqual(tps[0].path.nodes, [PathPoint(10, 0), PathPoint(0, 0)])
        self.assertEqual([tp.safe_to_close for tp in tps], [False, False])

    def testDuplicatePoints(self):
        tps = engrave([line((0, 0), (0, 0), (10, 0)), line((5, 5), (5, 5))], True)
        self.assertEqual(len(tps), 1)
        self.assertEqual(tps[0].path.nodes, [PathPoint(0, 0), PathPoint(10, 0)])

if __name__ == '__main__':
    unittest.main()
