import json
import logging
from CutCAM.common import geom
from CutCAM.common.geom import GeometrySettings, mm_to_int, int_to_mm
from CutCAM.common.errors import InvalidParameterError, check_positive, check_non_negative
from CutCAM.cam import pocket, contour, drill, vcarve
from CutCAM.cam.gcodegen import Gcode, JobParams, generate

logger = logging.getLogger(__name__)

class OperationType:
    POCKET = "Pocket"
    RASTER_POCKET = "Raster Pocket"
    INSIDE = "Inside"
    OUTSIDE = "Outside"
    ENGRAVE = "Engrave"
    PERFORATE = "Perforate"
    DRILL = "Drill"
    V_POCKET = "V Pocket"
    V_CARVE = "V Carve"
    all = [POCKET, RASTER_POCKET, INSIDE, OUTSIDE, ENGRAVE, PERFORATE, DRILL, V_POCKET, V_CARVE]
    # Margin shrinks the geometry for these, grows it for the others
    inset = [POCKET, RASTER_POCKET, INSIDE]

class CombineOp:
    GROUP = "Group"
    UNION = "Union"
    INTERSECT = "Intersect"
    DIFF = "Diff"
    XOR = "Xor"
    all = [GROUP, UNION, INTERSECT, DIFF, XOR]

class Direction:
    CONVENTIONAL = "Conventional"
    CLIMB = "Climb"
    all = [CONVENTIONAL, CLIMB]

# Scan lines of raster pockets run along this axis
class RasterAxis:
    X = "X"
    Y = "Y"
    all = [X, Y]

class MachineParams(object):
    """Stock and output settings shared by all operations of a job. Z values
    are in millimetres, the top of the stock is top_z."""
    def __init__(self, safe_z, top_z=0, inch_mode=False, decimals=3, offset_x=0, offset_y=0, return_home=False):
        self.safe_z = safe_z
        self.top_z = top_z
        self.inch_mode = inch_mode
        self.decimals = decimals
        self.offset_x = offset_x
        self.offset_y = offset_y
        self.return_home = return_home
    def units_per_mm(self):
        return 1.0 / GeometrySettings.INCH if self.inch_mode else 1.0

class RawPath(object):
    """Input path as imported from the drawing, with the fill rule of the
    element it came from."""
    def __init__(self, path, nonzero=False):
        self.path = path
        self.nonzero = nonzero
    def to_json(self):
        return {"path": [[p.x, p.y] for p in self.path.nodes], "closed": self.path.closed, "nonzero": self.nonzero}
    @staticmethod
    def from_json(data):
        return RawPath(geom.Path([geom.PathPoint(x, y) for x, y in data["path"]], bool(data.get("closed", False))), bool(data.get("nonzero", False)))
    def fill_rule(self):
        return geom.PFT_NONZERO if self.nonzero else geom.PFT_EVENODD

class Operation(object):
    """One machining operation of a job: the input paths, how to combine
    them and which strategy cuts the result. Lengths are in millimetres,
    the paths are in integer units."""
    # Persisted attribute names, in file order
    FIELDS = [("name", "name"), ("enabled", "enabled"), ("combineOp", "combine_op"), ("operation", "operation"),
        ("cutDepth", "cut_depth"), ("passDepth", "pass_depth"), ("width", "width"), ("direction", "direction"),
        ("spacing", "spacing"), ("ramp", "ramp"), ("margin", "margin"), ("stepOver", "step_over"),
        ("spindleSpeed", "spindle_speed"), ("rasterAxis", "raster_axis"), ("perforateOffset", "perforate_offset")]
    def __init__(self, raw_paths, operation=OperationType.POCKET, name=None, enabled=True, combine_op=CombineOp.UNION,
            cut_depth=1, pass_depth=None, width=0, direction=Direction.CONVENTIONAL, spacing=1, ramp=False, margin=0,
            step_over=None, spindle_speed=None, raster_axis=RasterAxis.X, perforate_offset=drill.PerforateOffset.OUTSIDE):
        self.raw_paths = raw_paths
        self.operation = operation
        self.name = name if name is not None else operation
        self.enabled = enabled
        self.combine_op = combine_op
        self.cut_depth = cut_depth
        self.pass_depth = pass_depth
        self.width = width
        self.direction = direction
        self.spacing = spacing
        self.ramp = ramp
        self.margin = margin
        self.step_over = step_over
        self.spindle_speed = spindle_speed
        self.raster_axis = raster_axis
        self.perforate_offset = perforate_offset
    def validate(self):
        if self.operation not in OperationType.all:
            raise InvalidParameterError(f"Unknown operation '{self.operation}'")
        if self.combine_op not in CombineOp.all:
            raise InvalidParameterError(f"Unknown combine operation '{self.combine_op}'")
        if self.direction not in Direction.all:
            raise InvalidParameterError(f"Unknown direction '{self.direction}'")
        if self.raster_axis not in RasterAxis.all:
            raise InvalidParameterError(f"Unknown raster axis '{self.raster_axis}'")
        if self.perforate_offset not in drill.PerforateOffset.all:
            raise InvalidParameterError(f"Unknown perforation offset '{self.perforate_offset}'")
        check_positive("Cut depth", self.cut_depth)
        if self.pass_depth is not None:
            check_positive("Pass depth", self.pass_depth)
        check_non_negative("Width", self.width)
        check_non_negative("Spacing", self.spacing)
        check_non_negative("Margin", self.margin)
        if self.step_over is not None and not (0 < self.step_over <= 1):
            raise InvalidParameterError(f"Step over must be in range (0, 1] (got {self.step_over})")
        return self
    def to_json(self):
        res = {}
        for key, attr in self.FIELDS:
            res[key] = getattr(self, attr)
        res["rawPaths"] = [rp.to_json() for rp in self.raw_paths]
        return res
    @staticmethod
    def from_json(data):
        op = Operation([RawPath.from_json(rp) for rp in data.get("rawPaths", [])])
        for key, attr in Operation.FIELDS:
            if key in data:
                setattr(op, attr, data[key])
        if "name" not in data:
            op.name = op.operation
        return op.validate()
    def to_json_string(self):
        return json.dumps(self.to_json())
    @staticmethod
    def from_json_string(text):
        return Operation.from_json(json.loads(text))
    def climb(self):
        return self.direction == Direction.CLIMB
    def combine(self):
        """Clean the input paths and fold the closed ones together with the
        combine operation. Open paths are passed through."""
        closed = []
        opened = []
        for rp in self.raw_paths:
            cleaned = geom.simplify_and_clean([rp.path], rp.fill_rule())
            if rp.path.closed:
                closed.append(cleaned)
            else:
                opened += cleaned
        if not closed:
            return opened
        if self.combine_op == CombineOp.GROUP:
            res = [p for paths in closed for p in paths]
        else:
            fn = {CombineOp.UNION: geom.union, CombineOp.INTERSECT: geom.intersection,
                CombineOp.DIFF: geom.difference, CombineOp.XOR: geom.xor}[self.combine_op]
            res = closed[0]
            for paths in closed[1:]:
                res = fn(res, paths)
        return res + opened
    def tool_for(self, tool):
        return tool.clone_with_overrides(maxdoc=self.pass_depth, stepover=self.step_over, climb=self.climb(), rpm=self.spindle_speed)
    def generate_toolpaths(self, tool, machine_params, warnings=None):
        self.validate()
        tool = self.tool_for(tool).validate()
        geometry = self.combine()
        diameter = tool.int_diameter()
        margin = mm_to_int(self.margin)
        if self.operation in OperationType.inset:
            margin = -margin
        if self.operation != OperationType.ENGRAVE and margin != 0:
            geometry = geom.offset(geometry, margin)
        # Drill cycle depths, relative to the top of the stock
        safe_dz = machine_params.safe_z - machine_params.top_z
        bot_dz = -self.cut_depth
        overlap = tool.overlap()
        op = self.operation
        logger.debug("Generating %s for %d paths, cutter %.3f mm", op, len(geometry), int_to_mm(diameter))
        if op == OperationType.POCKET:
            return pocket.concentric_pocket(geometry, diameter, overlap, tool.climb, warnings)
        elif op == OperationType.RASTER_POCKET:
            return pocket.raster_pocket(geometry, diameter, overlap, tool.climb, warnings, self.raster_axis == RasterAxis.X)
        elif op in (OperationType.INSIDE, OperationType.OUTSIDE):
            width = max(mm_to_int(self.width), diameter)
            return contour.outline(geometry, diameter, op == OperationType.INSIDE, width, overlap, tool.climb, warnings)
        elif op == OperationType.ENGRAVE:
            return contour.engrave(geometry, tool.climb)
        elif op == OperationType.PERFORATE:
            return drill.perforate(geometry, diameter, mm_to_int(self.spacing), safe_dz, bot_dz, warnings, self.perforate_offset)
        elif op == OperationType.DRILL:
            return drill.drill(geometry, safe_dz, bot_dz)
        elif op == OperationType.V_POCKET:
            return vcarve.vpocket(geometry, tool)
        elif op == OperationType.V_CARVE:
            return vcarve.vcarve(geometry, tool)
        raise InvalidParameterError(f"Unknown operation '{op}'")
    def job_params(self, tool, machine_params, tab_depth=None):
        tool = self.tool_for(tool)
        k = machine_params.units_per_mm()
        top_z = machine_params.top_z
        return JobParams(top_z * k, (top_z - self.cut_depth) * k, machine_params.safe_z * k, tool.maxdoc * k,
            tool.vfeed * k, tool.hfeed * k, ramp=self.ramp,
            tab_z=(top_z - tab_depth) * k if tab_depth is not None else None,
            x_scale=k / GeometrySettings.RESOLUTION, y_scale=k / GeometrySettings.RESOLUTION, z_scale=k,
            offset_x=machine_params.offset_x * k, offset_y=machine_params.offset_y * k)
    def to_gcode(self, gcode, tool, machine_params, tabs=None, tab_depth=None, warnings=None):
        toolpaths = self.generate_toolpaths(tool, machine_params, warnings)
        params = self.job_params(tool, machine_params, tab_depth)
        gcode.comment(f"Operation: {self.name}")
        gcode.begin_section(self.spindle_speed if self.spindle_speed is not None else tool.rpm)
        generate(gcode, toolpaths, params, tabs, warnings)
        return toolpaths

class Operations(object):
    """A job: operations cut in order with one tool, plus holding tabs
    shared by all of them."""
    def __init__(self, machine_params, tool, tabs=None, tab_depth=None):
        self.machine_params = machine_params
        self.tool = tool
        self.tabs = tabs or []
        self.tab_depth = tab_depth
        self.operations = []
    def add(self, operation):
        self.operations.append(operation)
    def add_all(self, operations):
        self.operations += operations
    def to_json(self):
        return [op.to_json() for op in self.operations]
    def from_json(self, data):
        self.operations = [Operation.from_json(i) for i in data]
    def to_gcode(self, warnings=None):
        mp = self.machine_params
        gcode = Gcode(mp.inch_mode, mp.decimals)
        gcode.reset()
        gcode.rapid(z=mp.safe_z * mp.units_per_mm())
        for operation in self.operations:
            if not operation.enabled:
                logger.debug("Skipping disabled operation %s", operation.name)
                continue
            operation.to_gcode(gcode, self.tool, mp, self.tabs, self.tab_depth, warnings)
        gcode.spindle_stop()
        if mp.return_home:
            gcode.rapid(x=0, y=0)
        gcode.finish()
        return gcode
    def to_gcode_file(self, filename, warnings=None):
        glines = self.to_gcode(warnings).gcode
        with open(filename, "w") as f:
            for line in glines:
                f.write(line + '\n')
