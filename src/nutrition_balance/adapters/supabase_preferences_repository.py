"""Supabase repository for user preferences."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutrition_balance.services.preferences import PreferencesRepository


@dataclass
class SupabasePreferencesRepository(PreferencesRepository):
    """Supabase implementation storing preferences as key/value rows."""

    client: Client
    table_name: str = "user_preferences"

    def load(self, key: str) -> str | None:
        """Return the stored value for a key."""
        response = (
            self.client.table(self.table_name)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        value = response.data[0].get("value")
        return value if isinstance(value, str) else None

    def save(self, key: str, value: str) -> None:
        """Insert or update the value for a key."""
        self.client.table(self.table_name).upsert(
            {
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="key",
        ).execute()
