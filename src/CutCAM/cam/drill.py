import logging
import math
from CutCAM.common import geom
from CutCAM.common.errors import InvalidParameterError, check_positive, check_non_negative, report_warning
from CutCAM.cam import toolpath

logger = logging.getLogger(__name__)

# Drill cycles carry their own depths. Z values are relative to the top of
# the stock (negative is below it), the generator adds the top Z.

def drill_hole(pt, safe_z, bot_z):
    return [pt.with_z(safe_z), pt.with_z(bot_z), pt.with_z(safe_z)]

def hole_positions(path, cutter_dia, spacing, warnings=None):
    """Evenly spaced points along the path, no closer than one cutter
    diameter plus spacing. On a closed path the last hole is one step short
    of the start, on an open path holes sit on both ends."""
    length = path.length()
    num_holes = int(math.floor(length / (cutter_dia + spacing))) if length > 0 else 0
    if num_holes == 0:
        report_warning(warnings, "Path is too short to fit a perforation hole")
        return []
    nodes = path.walk_nodes()
    if path.closed:
        step = length / num_holes
        targets = [k * step for k in range(num_holes)]
    elif num_holes == 1:
        targets = [0]
    else:
        step = length / (num_holes - 1)
        targets = [k * step for k in range(num_holes)]
    res = []
    travelled = 0
    i = 1
    for target in targets:
        while i < len(nodes) - 1 and travelled + nodes[i - 1].dist(nodes[i]) < target:
            travelled += nodes[i - 1].dist(nodes[i])
            i += 1
        seglen = nodes[i - 1].dist(nodes[i])
        alpha = min(1, (target - travelled) / seglen) if seglen else 0
        res.append(geom.weighted(nodes[i - 1], nodes[i], alpha))
    return res

def perforate_path(path, cutter_dia, spacing, safe_z, bot_z, warnings=None):
    nodes = []
    for pt in hole_positions(path, cutter_dia, spacing, warnings):
        nodes += drill_hole(pt, safe_z, bot_z)
    return geom.Path(nodes, False)

class PerforateOffset:
    OUTSIDE = "Outside"
    INSIDE = "Inside"
    ON = "On"
    all = [OUTSIDE, INSIDE, ON]

def perforate_outlines(path, cutter_dia, side):
    if side == PerforateOffset.OUTSIDE:
        return geom.offset([path], cutter_dia / 2, geom.JT_ROUND)
    if side == PerforateOffset.INSIDE:
        return geom.offset([path], -cutter_dia / 2)
    if side == PerforateOffset.ON:
        return [path]
    raise InvalidParameterError(f"Unknown perforation offset '{side}'")

def perforate(geometry, cutter_dia, spacing, safe_z, bot_z, warnings=None, side=PerforateOffset.OUTSIDE):
    """Row of holes around each closed path or along each open path. For
    closed paths the side decides where the holes go: outside or inside
    the shape with the cutter edge touching the line, or centred on it."""
    check_positive("Cutter diameter", cutter_dia)
    check_non_negative("Spacing", spacing)
    res = []
    for path in geometry:
        if path.closed:
            for outline in perforate_outlines(path, cutter_dia, side):
                res.append(perforate_path(outline, cutter_dia, spacing, safe_z, bot_z, warnings))
        elif len(path.nodes) >= 2:
            res.append(perforate_path(path, cutter_dia, spacing, safe_z, bot_z, warnings))
    res = [p for p in res if p.nodes]
    logger.debug("Perforate: %d toolpaths, %d holes", len(res), sum([len(p.nodes) // 3 for p in res]))
    return toolpath.Toolpaths([toolpath.Toolpath(p, has_z=True) for p in res])

def drill(geometry, safe_z, bot_z):
    """One hole at every vertex of every path."""
    nodes = []
    for path in geometry:
        for pt in path.nodes:
            nodes += drill_hole(pt, safe_z, bot_z)
    if not nodes:
        return toolpath.Toolpaths([])
    return toolpath.Toolpaths([toolpath.Toolpath(geom.Path(nodes, False), has_z=True)])
