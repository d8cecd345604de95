import logging
from shapely.geometry import Polygon, LineString
from CutCAM.common import geom, partition
from CutCAM.common.errors import PartitionError, check_positive, check_overlap, report_warning
from CutCAM.cam import toolpath

logger = logging.getLogger(__name__)

# Strategy dimensions (cutter diameter, width, spacing) are in integer units,
# the same space the geometry lives in.

def concentric_passes(geometry, cutter_dia, overlap, climb):
    """Successive inward offsets of the closed input paths, one list of
    paths per pass, outermost first. Stops when the offset collapses."""
    check_positive("Cutter diameter", cutter_dia)
    check_overlap(overlap)
    current = geom.offset(geom.closed_paths(geometry), -cutter_dia / 2)
    passes = []
    while current:
        passes.append([p.reverse() if climb else p for p in current])
        current = geom.offset(current, -cutter_dia * (1 - overlap))
    return passes

def concentric_pocket(geometry, cutter_dia, overlap, climb, warnings=None):
    if geom.open_paths(geometry):
        report_warning(warnings, "Open paths cannot be pocketed and were ignored")
    passes = concentric_passes(geometry, cutter_dia, overlap, climb)
    if not passes:
        report_warning(warnings, "Pocket is too small for the cutter")
        return toolpath.Toolpaths([])
    # Joining moves must stay within the area reachable by the cutter
    bounds = passes[0]
    merged = []
    for paths in passes:
        merged = geom.merge_paths(merged, paths, bounds)
    logger.debug("Concentric pocket: %d passes, %d toolpaths", len(passes), len(merged))
    return toolpath.to_toolpaths(merged, bounds)

def _ray_segments(shape, level, horizontal, lo, hi):
    """Parts of a scan line inside the shape, as [start, end] pairs ordered
    along the line. Touching parts are joined, single points dropped."""
    if horizontal:
        ray = LineString([(lo, level), (hi, level)])
    else:
        ray = LineString([(level, lo), (level, hi)])
    res = shape.intersection(ray)
    if res.is_empty:
        return []
    if hasattr(res, 'geoms'):
        parts = list(res.geoms)
    else:
        parts = [res]
    along = 0 if horizontal else 1
    segments = []
    for part in parts:
        if part.geom_type != 'LineString':
            continue
        coords = sorted(part.coords, key=lambda c: c[along])
        segments.append([coords[0], coords[-1]])
    segments.sort(key=lambda s: s[0][along])
    res = []
    for seg in segments:
        if res and res[-1][1][along] >= seg[0][along]:
            if seg[1][along] > res[-1][1][along]:
                res[-1][1] = seg[1]
        else:
            res.append(seg)
    return res

def raster_rows(shape, step, climb, horizontal=True):
    """Boustrophedon scan of a shapely shape, one list of segments per
    scan line. Horizontal lines go top to bottom for conventional milling
    and bottom to top for climb milling, vertical lines right to left and
    left to right. The first line is one step in from the edge."""
    if shape.is_empty:
        return []
    xmin, ymin, xmax, ymax = shape.bounds
    if horizontal:
        lo, hi, start, end = xmin, xmax, ymin, ymax
    else:
        lo, hi, start, end = ymin, ymax, xmin, xmax
    count = (end - start) / step
    if climb:
        level, stepway = start + step, 1
    else:
        level, stepway = end - step, -1
    rows = []
    direction = 1
    i = 0
    while i < count:
        i += 1
        segments = _ray_segments(shape, level, horizontal, lo - step, hi + step)
        if direction < 0:
            segments = [[b, a] for a, b in reversed(segments)]
        rows.append(segments)
        level += step * stepway
        direction = -direction
    return rows

def raster_convex(points, step, climb, horizontal=True):
    shape = Polygon([(p.x, p.y) for p in points])
    return [geom.PathPoint(x, y) for row in raster_rows(shape, step, climb, horizontal) for seg in row for x, y in seg]

def raster_paths(shape, step, climb, horizontal=True):
    """Scan lines of the shape joined into as few open paths as possible.
    A new path starts wherever the move to the next segment would leave
    the shape, e.g. across an island."""
    reach = shape.buffer(1)
    paths = []
    current = []
    for row in raster_rows(shape, step, climb, horizontal):
        for seg in row:
            if current and not reach.covers(LineString([current[-1], seg[0]])):
                paths.append(current)
                current = []
            current += seg
    if current:
        paths.append(current)
    return [geom.Path([geom.PathPoint(x, y) for x, y in p], False) for p in paths]

def raster_pocket(geometry, cutter_dia, overlap, climb, warnings=None, horizontal=True):
    """Outline of the area reachable by the cutter, outlines of the islands
    inside it, then parallel scan lines filling the rest. The outline is
    split into convex pieces first, islands are cut out of every piece."""
    check_positive("Cutter diameter", cutter_dia)
    check_overlap(overlap)
    step = cutter_dia * (1 - overlap)
    outlines = []
    islands = []
    rasters = []
    for poly, holes in geom.offset_regions(geom.closed_paths(geometry), -cutter_dia / 2):
        try:
            pieces = partition.convex_partition(poly.nodes)
        except PartitionError as e:
            report_warning(warnings, f"Raster fill skipped for one area: {e}")
            pieces = []
        hole_shapes = [Polygon([(p.x, p.y) for p in hole.nodes]) for hole in holes]
        first_point = None
        for piece in pieces:
            shape = Polygon([(p.x, p.y) for p in piece])
            for hole in hole_shapes:
                shape = shape.difference(hole)
            for path in raster_paths(shape, step, climb, horizontal):
                if first_point is None:
                    first_point = path.nodes[0]
                rasters.append(path)
        # Outline is cut first, ending next to where the raster fill begins
        if first_point is not None:
            poly = poly.make_last(poly.closest_vertex(first_point)[0])
        outlines.insert(0, poly)
        islands += holes
    if not outlines:
        report_warning(warnings, "Pocket is too small for the cutter")
    logger.debug("Raster pocket: %d outlines, %d islands, %d raster paths", len(outlines), len(islands), len(rasters))
    return toolpath.Toolpaths([toolpath.Toolpath(p, safe_to_close=p.closed) for p in outlines + islands + rasters])
