import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from CutCAM.common.geom import *
from CutCAM.common.errors import InvalidParameterError
from CutCAM.cam.pocket import *

def square(x0, y0, size):
    return Path([PathPoint(x0, y0), PathPoint(x0 + size, y0), PathPoint(x0 + size, y0 + size), PathPoint(x0, y0 + size)], True)

class ConcentricPocketTest(unittest.TestCase):
    def testPasses(self):
        passes = concentric_passes([square(0, 0, 100)], 10, 0, False)
        self.assertEqual(len(passes), 5)
        for i, paths in enumerate(passes):
            self.assertEqual(len(paths), 1)
            inset = 5 + 10 * i
            self.assertEqual(paths[0].bounds(), (inset, inset, 100 - inset, 100 - inset))

    def testOverlap(self):
        passes = concentric_passes([square(0, 0, 100)], 10, 0.5, False)
        self.assertEqual(len(passes), 9)

    def testClimb(self):
        conventional = concentric_passes([square(0, 0, 100)], 10, 0, False)
        climb = concentric_passes([square(0, 0, 100)], 10, 0, True)
        for p1, p2 in zip(conventional, climb):
            self.assertNotEqual(p1[0].orientation(), p2[0].orientation())

    def testPocket(self):
        warnings = []
        tps = concentric_pocket([square(0, 0, 100)], 10, 0, False, warnings)
        self.assertEqual(warnings, [])
        self.assertEqual(tps.bounds(), (5, 5, 95, 95))
        self.assertEqual([len(tp.path.nodes) for tp in tps], [10, 10, 4])
        self.assertEqual([tp.path.closed for tp in tps], [False, False, True])

    def testTooSmall(self):
        warnings = []
        tps = concentric_pocket([square(0, 0, 5)], 10, 0, False, warnings)
        self.assertEqual(len(tps), 0)
        self.assertEqual(len(warnings), 1)

    def testOpenPaths(self):
        warnings = []
        tps = concentric_pocket([Path([PathPoint(0, 0), PathPoint(100, 0)], False)], 10, 0, False, warnings)
        self.assertEqual(len(tps), 0)
        self.assertEqual(len(warnings), 2)

    def testInvalid(self):
        self.assertRaises(InvalidParameterError, lambda: concentric_pocket([square(0, 0, 100)], 0, 0, False))
        self.assertRaises(InvalidParameterError, lambda: concentric_pocket([square(0, 0, 100)], 10, 1, False))
        self.assertRaises(InvalidParameterError, lambda: raster_pocket([square(0, 0, 100)], -1, 0, False))
        self.assertRaises(InvalidParameterError, lambda: raster_pocket([square(0, 0, 100)], 10, -0.1, False))

class RasterPocketTest(unittest.TestCase):
    def assertPointNear(self, pt, x, y):
        self.assertAlmostEqual(pt.x, x, places=6)
        self.assertAlmostEqual(pt.y, y, places=6)

    def testRasterConvex(self):
        pts = raster_convex(square(0, 0, 100).nodes, 10, False)
        self.assertEqual(len(pts), 20)
        self.assertPointNear(pts[0], 0, 90)
        self.assertPointNear(pts[1], 100, 90)
        self.assertPointNear(pts[2], 100, 80)
        self.assertPointNear(pts[3], 0, 80)
        pts = raster_convex(square(0, 0, 100).nodes, 10, True)
        self.assertPointNear(pts[0], 0, 10)
        self.assertPointNear(pts[1], 100, 10)
        self.assertPointNear(pts[2], 100, 20)

    def testRasterTriangle(self):
        tri = [PathPoint(0, 0), PathPoint(100, 0), PathPoint(0, 100)]
        pts = raster_convex(tri, 25, False)
        self.assertPointNear(pts[0], 0, 75)
        self.assertPointNear(pts[1], 25, 75)
        self.assertPointNear(pts[2], 50, 50)
        self.assertPointNear(pts[3], 0, 50)

    def testRasterPocket(self):
        tps = raster_pocket([square(0, 0, 100)], 10, 0, False)
        self.assertEqual(len(tps), 2)
        outline = tps[0].path
        self.assertTrue(outline.closed)
        self.assertTrue(tps[0].safe_to_close)
        self.assertEqual(outline.bounds(), (5, 5, 95, 95))
        # Outline finishes next to the start of the raster fill
        self.assertEqual(outline.nodes[-1], PathPoint(5, 95))
        raster = tps[1].path
        self.assertFalse(raster.closed)
        self.assertEqual(len(raster.nodes), 18)
        self.assertPointNear(raster.nodes[0], 5, 85)

    def testRasterVertical(self):
        pts = raster_convex(square(0, 0, 100).nodes, 10, False, horizontal=False)
        self.assertEqual(len(pts), 20)
        self.assertPointNear(pts[0], 90, 0)
        self.assertPointNear(pts[1], 90, 100)
        self.assertPointNear(pts[2], 80, 100)
        self.assertPointNear(pts[3], 80, 0)
        pts = raster_convex(square(0, 0, 100).nodes, 10, True, horizontal=False)
        self.assertPointNear(pts[0], 10, 0)
        self.assertPointNear(pts[1], 10, 100)
        tps = raster_pocket([square(0, 0, 100)], 10, 0, False, horizontal=False)
        self.assertEqual(len(tps), 2)
        self.assertEqual(tps[0].path.nodes[-1], PathPoint(95, 5))
        self.assertEqual(len(tps[1].path.nodes), 18)
        self.assertPointNear(tps[1].path.nodes[0], 85, 5)

    def testRasterIsland(self):
        island = square(400, 400, 200)
        tps = raster_pocket([square(0, 0, 1000), island.reverse()], 50, 0, False)
        self.assertEqual(tps[0].path.bounds(), (25, 25, 975, 975))
        # Island outline, one cutter radius away from it
        self.assertTrue(tps[1].path.closed)
        self.assertEqual(tps[1].path.bounds(), (375, 375, 625, 625))
        rasters = [tp.path for tp in tps[2:]]
        self.assertTrue(len(rasters) >= 2)
        for path in rasters:
            self.assertFalse(path.closed)
            for i in range(1, len(path.nodes)):
                mid = weighted(path.nodes[i - 1], path.nodes[i], 0.5)
                self.assertNotEqual(island.inside(mid), 1)
        # Scan lines on both sides of the island
        row = [pt.x for path in rasters for pt in path.nodes if pt.y == 475]
        self.assertEqual(sorted(row), [25, 375, 625, 975])

    def testRasterConcave(self):
        lshape = Path([PathPoint(x, y) for x, y in [(0, 0), (200, 0), (200, 100), (100, 100), (100, 200), (0, 200)]], True)
        tps = raster_pocket([lshape], 10, 0, True)
        self.assertTrue(tps[0].path.closed)
        self.assertTrue(len(tps) >= 3)
        for tp in tps:
            for pt in tp.path.nodes:
                self.assertTrue(lshape.inside(pt) == 1)

    def testTooSmall(self):
        warnings = []
        self.assertEqual(len(raster_pocket([square(0, 0, 5)], 10, 0, False, warnings)), 0)
        self.assertEqual(len(warnings), 1)

if __name__ == '__main__':
    unittest.main()
