from PyQt5.QtCore import QSettings

import logging

from CutCAM.cam.milling_tool import Tool
from CutCAM.cam.gcodeops import MachineParams

logger = logging.getLogger(__name__)

class ConfigSetting(object):
    def __init__(self, attr_name, setting_pathname, def_value):
        self.attr_name = attr_name
        self.setting_pathname = setting_pathname
        self.def_value = def_value
    def init(self, target):
        setattr(target, self.attr_name, self.def_value)
    def load(self, settings, target):
        if settings.contains(self.setting_pathname):
            try:
                value = self.from_setting(settings.value(self.setting_pathname))
            except ValueError:
                logger.warning("Invalid value for %s, using the default", self.setting_pathname)
                value = self.def_value
            setattr(target, self.attr_name, self.validate(value))
    def save(self, settings, source):
        settings.setValue(self.setting_pathname, self.to_setting(getattr(source, self.attr_name)))
    def validate(self, value):
        return value
    def from_setting(self, cfgvalue):
        return str(cfgvalue)
    def to_setting(self, value):
        return str(value)

class IntConfigSetting(ConfigSetting):
    def from_setting(self, cfgvalue):
        return int(cfgvalue)
    def to_setting(self, value):
        return str(value)

class FloatConfigSetting(ConfigSetting):
    def __init__(self, attr_name, setting_pathname, def_value, digits, min_value=None):
        ConfigSetting.__init__(self, attr_name, setting_pathname, def_value)
        self.digits = digits
        self.min_value = min_value
    def validate(self, value):
        if self.min_value is not None and value < self.min_value:
            logger.warning("%s is below the minimum of %s, using the default", self.setting_pathname, self.min_value)
            return self.def_value
        return value
    def from_setting(self, cfgvalue):
        return float(cfgvalue)
    def to_setting(self, value):
        return f"{value:0.{self.digits}f}"

class BoolConfigSetting(ConfigSetting):
    def from_setting(self, cfgvalue):
        return cfgvalue == 'true' or cfgvalue is True
    def to_setting(self, value):
        return 'true' if value else 'false'

class ChoiceConfigSetting(ConfigSetting):
    def __init__(self, attr_name, setting_pathname, def_value, choices):
        ConfigSetting.__init__(self, attr_name, setting_pathname, def_value)
        self.choices = choices
    def validate(self, value):
        if value not in self.choices:
            logger.warning("%s: unknown value %s, using the default", self.setting_pathname, value)
            return self.def_value
        return value

class ConfigSettings(object):
    """Default job parameters, persisted with QSettings. Lengths are in
    millimetres, rates in mm/min."""
    setting_list = [
        FloatConfigSetting('tool_diameter', 'tool/diameter', 1, 3, 0.01),
        FloatConfigSetting('tool_angle', 'tool/angle', 90, 1, 1),
        FloatConfigSetting('plunge_rate', 'tool/plunge_rate', 100, 2, 0.01),
        FloatConfigSetting('cut_rate', 'tool/cut_rate', 100, 2, 0.01),
        FloatConfigSetting('pass_depth', 'tool/pass_depth', 0.2, 3, 0.001),
        FloatConfigSetting('step_over', 'tool/step_over', 40, 1, 1),
        FloatConfigSetting('spindle_rpm', 'tool/spindle_rpm', 1000, 0, 0),
        FloatConfigSetting('cut_depth', 'operation/cut_depth', 1, 3, 0.001),
        FloatConfigSetting('margin', 'operation/margin', 0, 3, 0),
        FloatConfigSetting('spacing', 'operation/spacing', 1, 3, 0),
        FloatConfigSetting('width', 'operation/width', 0, 3, 0),
        BoolConfigSetting('ramp', 'operation/ramp', False),
        ChoiceConfigSetting('direction', 'operation/direction', 'Conventional', ['Conventional', 'Climb']),
        ChoiceConfigSetting('combine_op', 'operation/combine_op', 'Union', ['Group', 'Union', 'Intersect', 'Diff', 'Xor']),
        ChoiceConfigSetting('raster_axis', 'operation/raster_axis', 'X', ['X', 'Y']),
        ChoiceConfigSetting('perforate_offset', 'operation/perforate_offset', 'Outside', ['Outside', 'Inside', 'On']),
        FloatConfigSetting('tab_depth', 'tabs/cut_depth', 0.5, 3, 0.001),
        FloatConfigSetting('clearance', 'material/clearance', 10, 2, 0),
        FloatConfigSetting('thickness', 'material/thickness', 10, 2, 0.001),
        ChoiceConfigSetting('gcode_units', 'gcode/units', 'mm', ['mm', 'inch']),
        IntConfigSetting('decimal_places', 'gcode/decimal_places', 3),
        BoolConfigSetting('return_home', 'gcode/return_home', False),
    ]
    def __init__(self, filename=None):
        self.filename = filename
        self.settings = self.createSettingsObj()
        for i in self.setting_list:
            i.init(self)
        self.load()
    def createSettingsObj(self):
        if self.filename is not None:
            return QSettings(self.filename, QSettings.IniFormat)
        return QSettings("CutCAM", "CutCAM")
    def load(self):
        settings = self.settings
        settings.sync()
        for i in self.setting_list:
            i.load(settings, self)
    def save(self):
        settings = self.settings
        for i in self.setting_list:
            i.save(settings, self)
        settings.sync()
    def make_tool(self):
        return Tool(self.tool_diameter, self.cut_rate, self.plunge_rate, self.pass_depth, self.step_over / 100.0,
            self.direction == 'Climb', tip_angle=self.tool_angle, rpm=self.spindle_rpm)
    def make_machine_params(self):
        return MachineParams(self.clearance, 0, self.gcode_units == 'inch', self.decimal_places, return_home=self.return_home)
    def make_props(self):
        """Keyword arguments for a new Operation."""
        return dict(cut_depth=self.cut_depth, margin=self.margin, spacing=self.spacing, width=self.width,
            ramp=self.ramp, direction=self.direction, combine_op=self.combine_op,
            raster_axis=self.raster_axis, perforate_offset=self.perforate_offset)
