"""Runtime measurements (achieved send rate)."""
