import logging

logger = logging.getLogger(__name__)

class CAMError(ValueError):
    pass

class InvalidParameterError(CAMError):
    pass

class UnsupportedOperationError(CAMError):
    pass

class ArcError(InvalidParameterError):
    pass

class PartitionError(CAMError):
    pass

class GcodeParseError(CAMError):
    def __init__(self, message, line_no=None, line=None):
        self.line_no = line_no
        self.line = line
        if line_no is not None:
            message = f"line {line_no}: {message}"
        if line is not None:
            message += f" [{line}]"
        CAMError.__init__(self, message)

# Diagnostics sink: callers pass a list to collect user-facing warnings.
def report_warning(warnings, message):
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)

def check_positive(name, value):
    if value is None or value <= 0:
        raise InvalidParameterError(f"{name} must be positive (got {value})")
    return value

def check_non_negative(name, value):
    if value is None or value < 0:
        raise InvalidParameterError(f"{name} must not be negative (got {value})")
    return value

def check_overlap(value):
    if value is None or not (0 <= value < 1):
        raise InvalidParameterError(f"Overlap must be in range [0, 1) (got {value})")
    return value
