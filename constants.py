class CONST:
    TIME_FORMAT = "%H:%M:%S"
    DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
    LOG_FILENAME_PATTERN = r".*\.(log|txt)$"
    DEFAULT_POINT_VALUE = 5.0
    ALL_STRATEGIES = "All Strategies"
    SELECT_STRATEGY = "--Select Strategy--"
    LONG = "LONG"
    SHORT = "SHORT"
