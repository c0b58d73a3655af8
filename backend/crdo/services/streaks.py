from dataclasses import dataclass, replace
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class StreakState:
    current_streak: int
    longest_streak: int
    last_run_date: Optional[date]
    # Reserved for streak freezes; carried through unchanged
    freeze_count: int = 0


EMPTY_STREAK = StreakState(current_streak=0, longest_streak=0, last_run_date=None)


def advance_streak(prior: Optional[StreakState], run_date: date) -> StreakState:
    """Return the streak after a run on `run_date`.

    Same day keeps the state, the next day extends it, anything else
    (a gap or a date before the last run) starts over at 1.
    """
    if prior is None or prior.last_run_date is None:
        if prior is None:
            return StreakState(1, 1, run_date)
        return replace(prior, current_streak=1, longest_streak=max(1, prior.longest_streak), last_run_date=run_date)

    days = (run_date - prior.last_run_date).days
    if days == 0:
        return prior
    if days == 1:
        current = prior.current_streak + 1
        return replace(
            prior,
            current_streak=current,
            longest_streak=max(prior.longest_streak, current),
            last_run_date=run_date,
        )
    return replace(prior, current_streak=1, last_run_date=run_date)
