from .date_bucketing import DateBucketing
from .streak_calculator import StreakCalculator
from .period_aggregator import PeriodAggregator
from .frequency_histogram import FrequencyHistogram
from .circuit_grouper import CircuitGrouper
from .workout_filter import WorkoutFilter

__all__ = [
    "DateBucketing",
    "StreakCalculator",
    "PeriodAggregator",
    "FrequencyHistogram",
    "CircuitGrouper",
    "WorkoutFilter",
]
