"""Domain models for logged and planned food entries."""

import math
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from uuid import uuid4

from nutrition_balance.domain.errors import InvalidInputError


class MealType(Enum):
    """Meal slot an entry belongs to."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"
    DRINKS = "Drinks"


@dataclass(frozen=True)
class FoodDraft:
    """Food entry fields supplied by the user, before an id is assigned."""

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    meal_type: MealType
    quantity: float = 1.0
    serving_value: float = 1.0
    serving_unit: str = "serving"

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise InvalidInputError("name", "Required.")
        for field_name in ("calories", "protein", "carbs", "fat"):
            value = getattr(self, field_name)
            if not _is_finite(value) or value < 0:
                raise InvalidInputError(field_name, "Must be a number >= 0.")
        validate_quantity(self.quantity)
        if not _is_finite(self.serving_value) or self.serving_value <= 0:
            raise InvalidInputError("serving_value", "Must be > 0.")
        if not self.serving_unit.strip():
            raise InvalidInputError("serving_unit", "Required.")


@dataclass(frozen=True)
class FoodEntry:
    """A logged or planned food item.

    Nutrition values are per one serving; ``quantity`` is the serving
    multiplier applied when totals are computed.
    """

    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    meal_type: MealType
    quantity: float
    serving_value: float
    serving_unit: str

    @classmethod
    def from_draft(cls, draft: FoodDraft) -> "FoodEntry":
        """Create an entry with a fresh identity from a validated draft."""
        return cls(
            id=new_entry_id(),
            name=draft.name.strip(),
            calories=float(draft.calories),
            protein=float(draft.protein),
            carbs=float(draft.carbs),
            fat=float(draft.fat),
            meal_type=draft.meal_type,
            quantity=float(draft.quantity),
            serving_value=float(draft.serving_value),
            serving_unit=draft.serving_unit.strip(),
        )

    def copy_with_new_id(self) -> "FoodEntry":
        """Return an identical entry under a newly generated id."""
        return replace(self, id=new_entry_id())

    @property
    def display_amount(self) -> float:
        """Total amount eaten in serving units (e.g. 150 for 1.5 x 100g)."""
        return self.quantity * self.serving_value

    def to_dict(self) -> dict[str, object]:
        """Serialize the entry to a JSON-friendly dict."""
        return {
            "id": self.id,
            "name": self.name,
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "meal_type": self.meal_type.value,
            "quantity": self.quantity,
            "serving_value": self.serving_value,
            "serving_unit": self.serving_unit,
        }


@dataclass(frozen=True)
class Ledger:
    """Date-keyed, insertion-ordered collection of food entries.

    Ledgers are values: every change returns a new ledger and the original
    is left untouched, so a logged ledger and a plan ledger never alias.
    """

    days: dict[str, tuple[FoodEntry, ...]] = field(default_factory=dict)

    def entries_for(self, key: str) -> tuple[FoodEntry, ...]:
        """Return the entries for a date, empty when none were recorded."""
        return self.days.get(key, ())

    def date_keys(self) -> list[str]:
        """Return date keys that hold at least one entry, sorted."""
        return sorted(key for key, entries in self.days.items() if entries)

    def find(self, key: str, entry_id: str) -> FoodEntry | None:
        """Return an entry by id within a date, if present."""
        for entry in self.entries_for(key):
            if entry.id == entry_id:
                return entry
        return None

    def append(self, key: str, entries: list[FoodEntry]) -> "Ledger":
        """Return a ledger with entries appended after existing ones."""
        if not entries:
            return self
        days = dict(self.days)
        days[key] = (*self.entries_for(key), *entries)
        return Ledger(days=days)

    def remove(self, key: str, entry_id: str) -> "Ledger":
        """Return a ledger without the given entry."""
        remaining = tuple(
            entry for entry in self.entries_for(key) if entry.id != entry_id
        )
        days = dict(self.days)
        if remaining:
            days[key] = remaining
        else:
            days.pop(key, None)
        return Ledger(days=days)

    def replace_entry(
        self,
        key: str,
        entry_id: str,
        *,
        quantity: float | None = None,
        meal_type: MealType | None = None,
    ) -> "Ledger":
        """Return a ledger with an entry's quantity and/or meal type edited."""
        if quantity is not None:
            validate_quantity(quantity)
        updated: list[FoodEntry] = []
        for entry in self.entries_for(key):
            if entry.id == entry_id:
                entry = replace(
                    entry,
                    quantity=entry.quantity if quantity is None else float(quantity),
                    meal_type=meal_type or entry.meal_type,
                )
            updated.append(entry)
        days = dict(self.days)
        if updated:
            days[key] = tuple(updated)
        return Ledger(days=days)


def date_key(day: date) -> str:
    """Return the ledger key (YYYY-MM-DD) for a calendar day."""
    return day.isoformat()


def new_entry_id() -> str:
    """Generate a unique entry identifier."""
    return uuid4().hex


def validate_quantity(quantity: float) -> None:
    """Reject non-positive or non-numeric serving multipliers."""
    if not _is_finite(quantity) or quantity <= 0:
        raise InvalidInputError("quantity", "Must be > 0.")


def _is_finite(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)
