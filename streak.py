class Streak:
    """
    Tracks the current run of consecutive wins (positive streak) or losses
    (negative streak) across a trade sequence. A breakeven trade ends either run.
    """

    def __init__(self):
        self.streak = 0
        self.best_streak = 0
        self.worst_streak = 0

    def process(self, pnl):
        """
        Processes a trade result and updates the streak.

        Args:
            pnl (float): Realized P&L of the trade.
        """
        if pnl > 0:
            self.streak = self.streak + 1 if self.streak > 0 else 1
            self.best_streak = max(self.best_streak, self.streak)
        elif pnl < 0:
            self.streak = self.streak - 1 if self.streak < 0 else -1
            self.worst_streak = min(self.worst_streak, self.streak)
        else:
            self.streak = 0

    @property
    def max_consecutive_wins(self):
        return self.best_streak

    @property
    def max_consecutive_losses(self):
        return abs(self.worst_streak)
