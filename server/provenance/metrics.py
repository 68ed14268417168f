from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone

from .schemas import CommitInfo


@dataclass(frozen=True)
class CommitCadence:
    dated_commits: int
    active_days: int
    burst_ratio: float

    @property
    def interpretation(self) -> str:
        return "Consistent" if self.burst_ratio < 0.5 else "Bursty/Clustered"


def calculate_commit_cadence(commits: list[CommitInfo]) -> CommitCadence | None:
    """
    Group commits by calendar day (UTC) and measure how clustered they are.

    Burst ratio: max commits in a single day / total dated commits.
    50 commits with 45 on one day -> 0.9 (bursty); max 5 per day -> 0.1.
    Returns None when no commit has a parseable date.
    """
    daily_counts = defaultdict(int)
    for commit in commits:
        if not commit.date:
            continue
        # Format: 2023-10-25T12:00:00Z
        try:
            dt = datetime.fromisoformat(commit.date.replace("Z", "+00:00"))
            if dt.tzinfo is not None:
                dt = dt.astimezone(timezone.utc)
        except ValueError:
            continue
        daily_counts[dt.strftime("%Y-%m-%d")] += 1

    if not daily_counts:
        return None

    total = sum(daily_counts.values())
    return CommitCadence(
        dated_commits=total,
        active_days=len(daily_counts),
        burst_ratio=round(max(daily_counts.values()) / total, 2),
    )
