"""Plan and grocery models."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Literal, Iterator, Tuple
from datetime import date


DAY_NAMES: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DayName = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class Meal(BaseModel):
    """A single meal of a daily plan."""

    name: str
    calories: int = Field(ge=0)
    protein: int = Field(ge=0)
    details: str

    class Config:
        frozen = True


class DailyPlan(BaseModel):
    """One day's routine."""

    wake_time: str
    hydration: str
    meals: List[Meal] = Field(min_length=1)
    workout: str
    checklist: List[str] = Field(min_length=1)
    beard_care: Optional[str] = None
    lifestyle_tips: Optional[List[str]] = None

    class Config:
        frozen = True


class WeeklyPlan(BaseModel):
    """Seven daily plans anchored to the Monday of a week."""

    start_date: date
    days: Dict[str, DailyPlan]

    @field_validator("days")
    @classmethod
    def check_day_names(cls, days: Dict[str, DailyPlan]) -> Dict[str, DailyPlan]:
        unknown = sorted(set(days) - set(DAY_NAMES))
        if unknown:
            raise ValueError(f"unknown day names: {', '.join(unknown)}")
        missing = [d for d in DAY_NAMES if d not in days]
        if missing:
            raise ValueError(f"missing days: {', '.join(missing)}")
        return days

    def ordered_days(self) -> Iterator[Tuple[str, DailyPlan]]:
        """Yield (day_name, plan) from Monday to Sunday."""
        for day_name in DAY_NAMES:
            yield day_name, self.days[day_name]


class GroceryItem(BaseModel):
    """Grocery list entry tracked by the store."""

    id: str
    name: str
    category: str
    purchased: bool = False


class GroceryListEntry(BaseModel):
    """Grocery entry as returned by the generation service."""

    name: str
    category: str


class WeeklyPlanResponse(BaseModel):
    """Validated payload of a weekly generation request."""

    monday: DailyPlan = Field(alias="Monday")
    tuesday: DailyPlan = Field(alias="Tuesday")
    wednesday: DailyPlan = Field(alias="Wednesday")
    thursday: DailyPlan = Field(alias="Thursday")
    friday: DailyPlan = Field(alias="Friday")
    saturday: DailyPlan = Field(alias="Saturday")
    sunday: DailyPlan = Field(alias="Sunday")
    grocery_list: List[GroceryListEntry] = Field(alias="groceryList")

    class Config:
        populate_by_name = True

    def days(self) -> Dict[str, DailyPlan]:
        """Day plans keyed by day name, Monday first."""
        return {day_name: getattr(self, day_name.lower()) for day_name in DAY_NAMES}
