class MetricNames:
    NEAR_MISSES = "Near Misses"
    SL_ADJUSTMENTS = "SL Adjustments"
    AVG_TRADE_DURATION = "Average Trade Duration"
    INCOMPLETE_TRADES = "Incomplete Trades"
    BEST_TRADE = "Best Trade"
    WORST_TRADE = "Worst Trade"
    MAX_CONSECUTIVE_LOSSES = "Max Consecutive Losses"
    MAX_CONSECUTIVE_WINS = "Max Consecutive Wins"
    CONSECUTIVE_LOSSES = "Consecutive Losses"

    # Per-line statistics flattened into metrics named "<line> - <stat>"
    LINE_TOTAL_TRADES = "Total Trades"
    LINE_WIN_RATE = "Win Rate"
    LINE_NET_PNL = "Net PNL"
    LINE_AVG_PNL = "Avg PNL"
    LINE_GROSS_PROFIT = "Gross Profit"
    LINE_GROSS_LOSS = "Gross Loss"
    LINE_PROFIT_FACTOR = "Profit Factor"

    DESCRIPTIONS = {
        NEAR_MISSES: "Number of take-profit and fill near misses",
        SL_ADJUSTMENTS: "Number of stop loss adjustments made",
        AVG_TRADE_DURATION: "Average trade duration in bars",
        INCOMPLETE_TRADES: "Fills dropped because no trade summary was logged",
        BEST_TRADE: "Best single trade P&L",
        WORST_TRADE: "Worst single trade P&L",
        MAX_CONSECUTIVE_LOSSES: "Maximum consecutive losing trades",
        MAX_CONSECUTIVE_WINS: "Maximum consecutive winning trades",
        CONSECUTIVE_LOSSES: "Consecutive losing trades",
    }

    @staticmethod
    def line_metric_name(line_label, stat):
        return f"{line_label} - {stat}"

    @staticmethod
    def get_line_stat_names():
        return [
            MetricNames.LINE_TOTAL_TRADES,
            MetricNames.LINE_WIN_RATE,
            MetricNames.LINE_NET_PNL,
            MetricNames.LINE_AVG_PNL,
            MetricNames.LINE_GROSS_PROFIT,
            MetricNames.LINE_GROSS_LOSS,
            MetricNames.LINE_PROFIT_FACTOR,
        ]

    @staticmethod
    def is_line_metric(name):
        return any(name.endswith(f" - {stat}") for stat in MetricNames.get_line_stat_names())

    @staticmethod
    def merge_rule(name):
        """
        How a metric combines across merged runs: 'mean' for rates, ratios,
        factors, averages and efficiencies, 'max' for best and maximum values,
        'min' for worst values, 'sum' for everything else (counts and totals).
        """
        lowered = name.lower()
        if any(word in lowered for word in ("rate", "ratio", "efficiency", "factor", "average", "avg")):
            return "mean"
        if lowered.startswith(("best", "max")):
            return "max"
        if lowered.startswith("worst"):
            return "min"
        return "sum"
