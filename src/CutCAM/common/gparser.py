import logging
import re

from CutCAM.common.errors import GcodeParseError, report_warning

logger = logging.getLogger(__name__)

class GcodePoint(object):
    """Machine position after a linear move, in G-code units."""
    def __init__(self, x=None, y=None, z=None, f=None):
        self.x = x
        self.y = y
        self.z = z
        self.f = f
    def copy(self):
        return GcodePoint(self.x, self.y, self.z, self.f)
    def as_dict(self):
        return {'x': self.x, 'y': self.y, 'z': self.z, 'f': self.f}
    def __eq__(self, other):
        return self.x == other.x and self.y == other.y and self.z == other.z and self.f == other.f
    def __repr__(self):
        return f"GcodePoint({self.x}, {self.y}, {self.z}, {self.f})"

class PathGcodeReceiver(object):
    def __init__(self, warnings=None):
        self.warnings = warnings
        self.points = []
        self.last = GcodePoint()
        self.feed = None
        self.terminated = False
        self.relative_reported = False
    def handleFeed(self, feed, data):
        self.feed = feed
    def handleDistanceCommand(self, cmd, data):
        if cmd.name == "Relative" and not self.relative_reported:
            report_warning(self.warnings, "Relative positioning (G91) is not supported, coordinates are treated as absolute")
            self.relative_reported = True
    def handleStopCommand(self, cmd, data):
        self.terminated = True
    def handleMotionCommand(self, cmd, data):
        if cmd.name not in ("Rapid", "Feed"):
            logger.debug("Ignoring %s move", cmd.name)
            return
        pt = self.last.copy()
        for axis in "XYZ":
            if axis in data:
                setattr(pt, axis.lower(), data[axis])
        if self.feed is not None:
            pt.f = self.feed
        self.points.append(pt)
        self.last = pt
    def handleRest(self, cmd, data):
        logger.debug("Ignoring %s", cmd.gcode)

class GcodeCommand(object):
    modal = False
    def __init__(self, name, as_gcode=None):
        self.name = name
        self.gcode = as_gcode
    def __str__(self):
        return self.name
    def __repr__(self):
        return "%s('%s')" % (self.__class__.__name__, self.name)
    def get_family(self):
        return self.__class__.__name__
    def execute(self, receiver, data):
        f = "handle" + self.get_family()
        if hasattr(receiver, f):
            getattr(receiver, f)(self, data)
        elif hasattr(receiver, "handleRest"):
            receiver.handleRest(self, data)

class FeedCommand(GcodeCommand):
    def __init__(self, feed):
        GcodeCommand.__init__(self, "Feed")
        self.feed = feed
    def execute(self, receiver, data):
        receiver.handleFeed(self.feed, data)

class SpeedCommand(GcodeCommand):
    def __init__(self, speed):
        GcodeCommand.__init__(self, "Speed", "S")
        self.speed = speed

class MotionCommand(GcodeCommand):
    modal = True

class PlaneCommand(GcodeCommand):
    pass

class DistanceCommand(GcodeCommand):
    pass

class UnitsCommand(GcodeCommand):
    pass

class SpindleCommand(GcodeCommand):
    pass

class StopCommand(GcodeCommand):
    pass

class DwellCommand(GcodeCommand):
    pass

cmdTypeList = [
    FeedCommand,
    SpeedCommand,
    SpindleCommand,
    DwellCommand,
    PlaneCommand,
    UnitsCommand,
    DistanceCommand,
    MotionCommand,
    StopCommand
]

class GcodeCommands(object):
    G0  = MotionCommand("Rapid", "G0")
    G1  = MotionCommand("Feed", "G1")
    G2  = MotionCommand("ArcCW", "G2")
    G3  = MotionCommand("ArcCCW", "G3")
    G4  = DwellCommand("Dwell", "G4")
    G17 = PlaneCommand("PlaneXY", "G17")
    G20 = UnitsCommand("Inches", "G20")
    G21 = UnitsCommand("Metric", "G21")
    G90 = DistanceCommand("Absolute", "G90")
    G91 = DistanceCommand("Relative", "G91")
    M2  = StopCommand("End2", "M2")
    M3  = SpindleCommand("SpindleCW", "M3")
    M4  = SpindleCommand("SpindleCCW", "M4")
    M5  = SpindleCommand("SpindleOff", "M5")
    M30 = StopCommand("End30", "M30")

class GcodeState(object):
    word_extractor = re.compile(r"\s*([A-Za-z@^])\s*([-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+))")
    def __init__(self, receiver):
        self.receiver = receiver
        self.sticky_state = {}
    @staticmethod
    def prepare(line, line_no=None):
        """Strip (parenthesised) and ;-to-end-of-line comments. Returns the
        remaining code and the comment text, if any."""
        code = ''
        comments = []
        pos = 0
        while pos < len(line):
            ch = line[pos]
            if ch == '(':
                end = line.find(')', pos + 1)
                if end == -1:
                    raise GcodeParseError("Unterminated comment", line_no, line)
                comments.append(line[pos + 1:end])
                pos = end + 1
            elif ch == ';':
                comments.append(line[pos + 1:])
                break
            else:
                code += ch
                pos += 1
        return code.strip(), (" ".join(comments) if comments else None)
    def tokenize(self, code, line_no=None, line=None):
        words = []
        pos = 0
        while pos < len(code):
            m = self.word_extractor.match(code, pos)
            if m is None:
                if code[pos:].strip() == '':
                    break
                raise GcodeParseError(f"Unexpected '{code[pos:].strip()}'", line_no, line)
            word, value = m.group(1).upper(), float(m.group(2))
            if word == 'O':
                # Subroutine call or definition, the rest of the line is ignored
                break
            words.append((word, value))
            pos = m.end()
        return words
    def handle_line(self, line, line_no=None):
        code, comment = self.prepare(line, line_no)
        words = {}
        words.update(self.sticky_state)
        has_motion_word = False
        for word, value in self.tokenize(code, line_no, line):
            if word == 'F':
                words['FeedCommand'] = FeedCommand(value)
            elif word == 'S':
                words['SpeedCommand'] = SpeedCommand(value)
            elif word in ['G', 'M']:
                cmd, subcmd = int(value), int(round(value * 10)) % 10
                if subcmd > 0:
                    cmd = "%s%s_%s" % (word, cmd, subcmd)
                else:
                    cmd = "%s%s" % (word, cmd)
                if hasattr(GcodeCommands, cmd):
                    cmdo = getattr(GcodeCommands, cmd)
                    words[cmdo.get_family()] = cmdo
                    if isinstance(cmdo, MotionCommand):
                        has_motion_word = True
                else:
                    logger.debug("Line %s: ignored %s", line_no, cmd)
            else:
                words[word] = value
        has_axis = any([axis in words for axis in "XYZ"])
        for ctype in cmdTypeList:
            cname = ctype.__name__
            if cname not in words:
                continue
            # A modal move repeats only on lines carrying axis words
            if ctype is MotionCommand and not (has_motion_word or has_axis):
                continue
            words[cname].execute(self.receiver, words)
            if ctype.modal:
                self.sticky_state[cname] = words[cname]
        return comment

def backfill(points):
    """Axis positions are undefined until first set, give every leading
    undefined value the first value the axis receives later on."""
    for field in ['x', 'y', 'z', 'f']:
        first = None
        for pt in points:
            if getattr(pt, field) is not None:
                first = getattr(pt, field)
                break
        if first is None:
            logger.debug("%s never gets a value", field)
            first = 0
        for pt in points:
            if getattr(pt, field) is not None:
                break
            setattr(pt, field, first)
    return points

def parse_gcode(text, warnings=None):
    """Parse G-code text into a list of GcodePoint, one per G0/G1 move.
    Parsing stops at M2/M30 or at the second % demarcation line. Block
    deleted (/) and blank lines are skipped."""
    receiver = PathGcodeReceiver(warnings)
    state = GcodeState(receiver)
    percents = 0
    for line_no, line in enumerate(re.split(r"\r?\n", text), 1):
        line = line.strip()
        if not line or line.startswith('/'):
            continue
        if line == '%':
            percents += 1
            if percents == 2:
                break
            continue
        state.handle_line(line, line_no)
        if receiver.terminated:
            break
    if percents == 1:
        report_warning(warnings, "Malformed G-code, no terminating %")
    logger.debug("Parsed %d moves", len(receiver.points))
    return backfill(receiver.points)

def parse_gcode_file(filename, warnings=None):
    with open(filename, "r") as f:
        return parse_gcode(f.read(), warnings)
