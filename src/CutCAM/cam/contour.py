import logging
from CutCAM.common import geom
from CutCAM.common.errors import check_positive, check_overlap, check_non_negative, report_warning
from CutCAM.cam import toolpath

logger = logging.getLogger(__name__)

def outline(geometry, cutter_dia, inside, width, overlap, climb, warnings=None):
    """Inside or outside contour, as wide as width (at least one cutter
    diameter). Passes step away from the shape and are stitched together
    without leaving the ring being cut."""
    check_positive("Cutter diameter", cutter_dia)
    check_non_negative("Width", width)
    check_overlap(overlap)
    geometry = geom.closed_paths(geometry)
    if not geometry:
        report_warning(warnings, "Contour operations need closed paths")
        return toolpath.Toolpaths([])
    width = max(width, cutter_dia)
    each_width = cutter_dia * (1 - overlap)
    if inside:
        current = geom.offset(geometry, -cutter_dia / 2)
        bounds = geom.difference(current, geom.offset(geometry, -(width - cutter_dia / 2)))
        each_offset = -each_width
        need_reverse = climb
    else:
        current = geom.offset(geometry, cutter_dia / 2)
        bounds = geom.difference(geom.offset(geometry, width - cutter_dia / 2), current)
        each_offset = each_width
        need_reverse = not climb
    all_paths = []
    current_width = cutter_dia
    while current and current_width <= width:
        if need_reverse:
            current = [p.reverse() for p in current]
        all_paths += current
        next_width = current_width + each_width
        if next_width > width and width > current_width:
            # Last, narrower pass finishing exactly at the requested width
            remaining = width - current_width
            last = geom.offset(current, -remaining if inside else remaining)
            all_paths += [p.reverse() for p in last] if need_reverse else last
            break
        current_width = next_width
        current = geom.offset(current, each_offset)
    if not all_paths:
        report_warning(warnings, "Contour is too small for the cutter")
        return toolpath.Toolpaths([])
    merged = geom.merge_paths([], all_paths, bounds)
    logger.debug("%s contour: %d passes, %d toolpaths", "Inside" if inside else "Outside", len(all_paths), len(merged))
    return toolpath.to_toolpaths(merged, bounds)

def inside_outline(geometry, cutter_dia, width, overlap, climb, warnings=None):
    return outline(geometry, cutter_dia, True, width, overlap, climb, warnings)

def outside_outline(geometry, cutter_dia, width, overlap, climb, warnings=None):
    return outline(geometry, cutter_dia, False, width, overlap, climb, warnings)

def engrave(geometry, climb):
    """Follow the input lines with the cutter centre. Closed paths are
    turned into open ones ending where they started."""
    paths = []
    for path in geometry:
        path = path.unduplicate()
        if len(path.nodes) < 2:
            continue
        copy = path if climb else path.reverse()
        if copy.closed:
            copy = geom.Path(copy.walk_nodes(), False)
        paths.append(copy.clone())
    merged = geom.merge_paths([], paths, geom.closed_paths(geometry))
    logger.debug("Engrave: %d toolpaths", len(merged))
    # Retracting between passes is only skipped when the pass ends where the next one starts
    return toolpath.Toolpaths([toolpath.Toolpath(p, safe_to_close=p.nodes[0] == p.nodes[-1]) for p in merged])
