class DEFAULT:
    database_path = "data/strategy_runs.db"
    directory_path = "~/StrategyLogs/"
    default_point_value = 5.0
    auto_refresh_ms = 30000
    logging_level = "INFO"
    point_values = {
        "MNQ": 2.0,
        "NQ": 20.0,
        "MES": 5.0,
        "ES": 50.0,
    }
