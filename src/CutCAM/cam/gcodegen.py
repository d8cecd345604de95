import logging
from CutCAM.common.geom import *
from CutCAM.common.errors import check_positive, report_warning, InvalidParameterError
from CutCAM.cam import toolpath

logger = logging.getLogger(__name__)

TABS_TOO_DEEP = "Tabs are cut deeper than the max operation depth, and will be ignored."

class Gcode(object):
    """Accumulates output lines. Coordinates passed in are already in
    G-code units."""
    def __init__(self, inch_mode=False, decimals=3):
        self.inch_mode = inch_mode
        self.decimals = decimals
        self.gcode = []
        self.last_feed = None
        self.last_feed_index = None
        self.rpm = None
        self.last_coords = None
        self.spindle_on = False
    def add(self, line):
        self.gcode.append(line)
    def add_dedup(self, line):
        if self.gcode and self.gcode[-1] == line:
            return
        self.gcode.append(line)
    def comment(self, comment):
        comment = comment.replace("(", "<").replace(")",">")
        self.add(f"({comment})")
    def reset(self):
        unit_mode = "G20" if self.inch_mode else "G21"
        self.add(f"G17 G90 G40 {unit_mode}")
    def spindle_start(self):
        if self.spindle_on:
            return
        if self.rpm is not None:
            self.add(f"M3 S{self.rpm:g}")
        else:
            self.add("M3")
        self.spindle_on = True
    def spindle_stop(self):
        if self.spindle_on:
            self.add("M5")
            self.spindle_on = False
    def finish(self):
        self.spindle_stop()
        self.add("M2")
    def begin_section(self, rpm=None):
        self.last_feed = None
        if rpm != self.rpm:
            self.spindle_stop()
        self.rpm = rpm
        self.spindle_start()
    def feed(self, feed):
        if feed != self.last_feed:
            if self.last_feed_index == len(self.gcode) - 1:
                self.gcode[-1] = self.enc_feed(feed)
            else:
                self.add(self.enc_feed(feed))
            self.last_feed = feed
            self.last_feed_index = len(self.gcode) - 1
    def add_dedup_g0g1(self, cmd, x=None, y=None, z=None, f=None):
        coords = self.enc_coords(x, y, z)
        if coords == self.last_coords:
            if f is not None:
                self.feed(f)
            return
        if f is not None and f != self.last_feed:
            cmd += " " + self.enc_feed(f)
            self.last_feed = f
        self.add_dedup(cmd + coords)
        self.last_coords = coords
    def rapid(self, x=None, y=None, z=None):
        self.add_dedup_g0g1("G0", x, y, z)
    def linear(self, x=None, y=None, z=None, f=None):
        self.add_dedup_g0g1("G1", x, y, z, f)
    def enc_number(self, value):
        res = f"%0.{self.decimals}f" % value
        if "." in res:
            res = res.rstrip("0").rstrip(".")
        return "0" if res == "-0" else res
    def enc_feed(self, feed):
        return "F" + self.enc_number(feed)
    def enc_coord(self, letter, value):
        return f" {letter}" + self.enc_number(value)
    def enc_coords(self, x=None, y=None, z=None):
        res = ""
        if x is not None:
            res += self.enc_coord('X', x)
        if y is not None:
            res += self.enc_coord('Y', y)
        if z is not None:
            res += self.enc_coord('Z', z)
        return res
    def lines(self):
        return list(self.gcode)

class JobParams(object):
    """Per-operation generator settings. Depths, feeds and offsets are in
    G-code units, x_scale/y_scale convert integer geometry units into G-code
    units. tab_z defaults to bot_z, which disables tabs."""
    def __init__(self, top_z, bot_z, safe_z, pass_depth, plunge_feed, cut_feed, ramp=False, tab_z=None,
            x_scale=1.0 / GeometrySettings.RESOLUTION, y_scale=1.0 / GeometrySettings.RESOLUTION, z_scale=1.0,
            offset_x=0, offset_y=0, use_z=False):
        self.top_z = top_z
        self.bot_z = bot_z
        self.safe_z = safe_z
        self.pass_depth = pass_depth
        self.plunge_feed = plunge_feed
        self.cut_feed = cut_feed
        self.ramp = ramp
        self.tab_z = tab_z
        self.x_scale = x_scale
        self.y_scale = y_scale
        self.z_scale = z_scale
        self.offset_x = offset_x
        self.offset_y = offset_y
        self.use_z = use_z
    def clone(self, **attrs):
        res = JobParams(self.top_z, self.bot_z, self.safe_z, self.pass_depth, self.plunge_feed, self.cut_feed,
            self.ramp, self.tab_z, self.x_scale, self.y_scale, self.z_scale, self.offset_x, self.offset_y, self.use_z)
        for k, v in attrs.items():
            assert hasattr(res, k), "Unknown attribute %s" % k
            setattr(res, k, v)
        return res
    def validate(self):
        check_positive("Pass depth", self.pass_depth)
        check_positive("Plunge feed rate", self.plunge_feed)
        check_positive("Cut feed rate", self.cut_feed)
        if self.bot_z > self.top_z:
            raise InvalidParameterError(f"Bottom Z ({self.bot_z}) is above top Z ({self.top_z})")
        if self.safe_z < self.top_z:
            raise InvalidParameterError(f"Safe Z ({self.safe_z}) is below top Z ({self.top_z})")
        return self
    def get_x(self, x):
        return x * self.x_scale + self.offset_x
    def get_y(self, y):
        return y * self.y_scale + self.offset_y
    def get_z(self, z):
        return z * self.z_scale + self.top_z

class PathOutput(object):
    """Emits one toolpath: depth passes from top Z to bottom Z, each with
    a plunge or a ramp, cut shallower over the tabs."""
    def __init__(self, gcode, params, tabs):
        self.gcode = gcode
        self.params = params
        self.tabs = tabs
    def xy_dist(self, p1, p2):
        p = self.params
        dx = p.get_x(p2.x) - p.get_x(p1.x)
        dy = p.get_y(p2.y) - p.get_y(p1.y)
        return sqrt(dx * dx + dy * dy)
    def ramp(self, points, current_z, selected_z):
        """Descend along the start of the path and back. Returns False if
        the path has no length to ramp along."""
        p = self.params
        min_plunge_time = (current_z - selected_z) / p.plunge_feed
        ideal_dist = p.cut_feed * min_plunge_time
        total_dist = 0
        end = 1
        while end < len(points):
            if total_dist > ideal_dist:
                break
            total_dist += 2 * self.xy_dist(points[end - 1], points[end])
            end += 1
        if total_dist <= 0:
            return False
        self.gcode.comment("Ramp")
        ramp_path = points[:end] + list(reversed(points[:end - 1]))
        feed = min(total_dist / min_plunge_time, p.cut_feed)
        travelled = 0
        for i in range(1, len(ramp_path)):
            travelled += self.xy_dist(ramp_path[i - 1], ramp_path[i])
            z = current_z + travelled / total_dist * (selected_z - current_z)
            self.gcode.linear(x=p.get_x(ramp_path[i].x), y=p.get_y(ramp_path[i].y), z=z, f=feed if i == 1 else None)
        return True
    def cut(self, points, use_z):
        p = self.params
        for i in range(1, len(points)):
            prev, pt = points[i - 1], points[i]
            z = p.get_z(pt.z) if use_z and pt.z is not None else None
            feed = p.cut_feed
            # Going straight down is a plunge
            if z is not None and pt == prev and prev.z is not None and pt.z < prev.z:
                feed = p.plunge_feed
            self.gcode.linear(x=p.get_x(pt.x), y=p.get_y(pt.y), z=z, f=feed)
    def write(self, tp, index):
        p = self.params
        gcode = self.gcode
        tabs = self.tabs
        tab_z = p.tab_z if p.tab_z is not None else p.bot_z
        orig = tp.points()
        use_z = p.use_z or tp.has_z
        if tabs:
            separated = [piece.nodes for piece in toolpath.separate_tabs(Path(orig, False), tabs)]
        else:
            separated = [orig]
        gcode.comment(f"Path {index}")
        current_z = p.safe_z
        finished_z = p.top_z
        while finished_z > p.bot_z:
            next_z = max(finished_z - p.pass_depth, p.bot_z)
            if current_z < p.safe_z and (not tp.safe_to_close or tabs):
                gcode.rapid(z=p.safe_z)
                current_z = p.safe_z
            # max() means shallowest
            current_z = max(finished_z, tab_z) if tabs else finished_z
            gcode.rapid(x=p.get_x(orig[0].x), y=p.get_y(orig[0].y), z=current_z)
            if next_z >= tab_z or use_z:
                selected = [orig]
            else:
                selected = separated
            for idx, points in enumerate(selected):
                if not points:
                    continue
                if not use_z:
                    # Odd pieces are the ones over tabs
                    selected_z = tab_z if idx & 1 else next_z
                    if selected_z < current_z:
                        if not (p.ramp and self.ramp(points, current_z, selected_z)):
                            gcode.linear(z=selected_z, f=p.plunge_feed)
                    elif selected_z > current_z:
                        gcode.rapid(z=tab_z)
                    current_z = selected_z
                self.cut(points, use_z)
            finished_z = next_z
            if use_z:
                break
        gcode.rapid(z=p.safe_z)

def generate(gcode, toolpaths, params, tabs=None, warnings=None):
    """Append the G-code for the toolpaths to gcode. Tab polygons are in
    the same integer space as the toolpaths."""
    params.validate()
    tab_z = params.tab_z if params.tab_z is not None else params.bot_z
    tabs = [t for t in (tabs or []) if t.closed and len(t.nodes) >= 3]
    if tabs and tab_z <= params.bot_z:
        report_warning(warnings, TABS_TOO_DEEP)
        tabs = []
    output = PathOutput(gcode, params, tabs)
    count = 0
    for tp in toolpaths:
        if not tp.path.nodes:
            continue
        output.write(tp, count)
        count += 1
    logger.debug("Generated %d paths, %d lines", count, len(gcode.gcode))
    return gcode

def generate_gcode(toolpaths, params, tabs=None, warnings=None, inch_mode=False, decimals=3):
    """Standalone variant of generate, returns the list of lines."""
    gcode = Gcode(inch_mode, decimals)
    generate(gcode, toolpaths, params, tabs, warnings)
    return gcode.lines()
