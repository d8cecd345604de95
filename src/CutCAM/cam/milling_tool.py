from CutCAM.common.geom import mm_to_int
from CutCAM.common.errors import InvalidParameterError, check_positive

class Tool(object):
    """Cutter description. Diameter and pass depth are in millimetres,
    feeds in mm/min. Step over is a fraction of the diameter, the overlap
    between neighbouring passes is its complement."""
    def __init__(self, diameter, hfeed, vfeed, maxdoc, stepover=0.4, climb=False, tip_angle=90, rpm=None):
        self.diameter = diameter
        self.hfeed = hfeed
        self.vfeed = vfeed
        self.maxdoc = maxdoc
        self.stepover = stepover
        self.climb = climb
        self.tip_angle = tip_angle
        self.rpm = rpm
    def validate(self):
        check_positive("Tool diameter", self.diameter)
        check_positive("Cut feed rate", self.hfeed)
        check_positive("Plunge feed rate", self.vfeed)
        check_positive("Pass depth", self.maxdoc)
        if self.stepover is None or not (0 < self.stepover <= 1):
            raise InvalidParameterError(f"Step over must be in range (0, 1] (got {self.stepover})")
        return self
    def overlap(self):
        return 1 - self.stepover
    def int_diameter(self):
        return mm_to_int(self.diameter)
    def clone_with_overrides(self, hfeed=None, vfeed=None, maxdoc=None, stepover=None, climb=None, rpm=None):
        def ovr(v1, v2):
            return v1 if v1 is not None else v2
        return Tool(self.diameter, ovr(hfeed, self.hfeed), ovr(vfeed, self.vfeed), ovr(maxdoc, self.maxdoc),
            ovr(stepover, self.stepover), ovr(climb, self.climb), self.tip_angle, ovr(rpm, self.rpm))
    def __repr__(self):
        return f"Tool({self.diameter}, {self.hfeed}, {self.vfeed}, {self.maxdoc}, stepover={self.stepover}, climb={self.climb})"
