"""
Queue processor statistics.

In-memory counters only; stats reset when the process restarts.
"""

from dataclasses import dataclass, field, asdict


@dataclass
class ProcessorStats:
    """Counters for queue processor activity."""
    ticks: int = 0                       # run_once invocations
    attempts: int = 0                    # commit attempts made
    committed: int = 0                   # successful commits
    failed: int = 0                      # failed attempts (item retried)
    dead_lettered: int = 0               # items given up on (max_retries)
    total_commit_time: float = 0.0       # seconds spent in commit attempts
    errors_by_type: dict = field(default_factory=dict)

    def record_success(self, commit_time: float) -> None:
        """Record a successful commit attempt."""
        self.attempts += 1
        self.committed += 1
        self.total_commit_time += commit_time

    def record_failure(self, error_type: str, commit_time: float, dead_lettered: bool = False) -> None:
        """
        Record a failed commit attempt.

        Args:
            error_type: Exception class name
            commit_time: Seconds spent in the attempt
            dead_lettered: True if the item will not be retried again
        """
        self.attempts += 1
        self.failed += 1
        self.total_commit_time += commit_time
        self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1
        if dead_lettered:
            self.dead_lettered += 1

    @property
    def success_rate(self) -> float:
        """Percentage of attempts that committed (0.0 when no attempts)."""
        if self.attempts == 0:
            return 0.0
        return (self.committed / self.attempts) * 100

    @property
    def avg_commit_time(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.total_commit_time / self.attempts

    def to_dict(self) -> dict:
        data = asdict(self)
        data['errors_by_type'] = dict(self.errors_by_type)
        data['success_rate'] = round(self.success_rate, 1)
        data['avg_commit_time_ms'] = int(self.avg_commit_time * 1000)
        return data
