"""Supabase-backed completion notifier."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from qaza_tracker.domain.qaza import DebtRecord
from qaza_tracker.services.progress import CompletionNotifier

ACHIEVEMENT_TYPE = "qaza_completed"


@dataclass
class SupabaseAchievementNotifier(CompletionNotifier):
    """Record a payoff as a row in the achievements table."""

    client: Client

    async def notify_completed(self, record: DebtRecord) -> None:
        """Insert a completion achievement for the record's user."""
        earned_at = record.completed_at or datetime.now(tz=UTC)
        response = (
            self.client.table("achievements")
            .insert(
                {
                    "user_id": str(record.user_id),
                    "type": ACHIEVEMENT_TYPE,
                    "earned_at": earned_at.isoformat(),
                    "metadata": {
                        "total_debt": record.debts.total(),
                        "total_progress": record.progress.total(),
                    },
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to record qaza completion achievement")
