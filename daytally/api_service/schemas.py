from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, List

from daytally.ledger.models import Category

# Base schemas
class BaseSchema(BaseModel):
    """Base schema for all Pydantic models to inherit from."""
    model_config = ConfigDict(from_attributes=True)

# Token schemas
class Token(BaseSchema):
    """Schema for a session token."""
    access_token: str
    token_type: str = "bearer"
    uid: str
    email: str

class SignupRequest(BaseSchema):
    email: str
    password: str
    confirm_password: Optional[str] = None

class GoogleLoginRequest(BaseSchema):
    id_token: str = Field(..., min_length=1)

class CurrentUser(BaseSchema):
    uid: str
    email: str

# Activity schemas
class ActivityIn(BaseSchema):
    """
    Raw activity form input. Duration and category stay loose here and are
    validated by the ledger so the messages match the entry form's.
    """
    name: str = ""
    category: Optional[str] = None
    duration: Any = None

class Activity(BaseSchema):
    id: str
    name: str
    category: Category
    duration: int
    timestamp: int
    display: str

class DayView(BaseSchema):
    """Everything the daily entry view needs."""
    date: str
    activities: List[Activity]
    total_minutes: int
    remaining_minutes: int
    total_display: str
    remaining_display: str
    progress_percent: float
    can_analyze: bool
    analyze_hint: str

class CategoryOption(BaseSchema):
    name: Category
    color: str

class CategoryList(BaseSchema):
    categories: List[CategoryOption]
    default: Category

# Analytics schemas
class CategoryBreakdown(BaseSchema):
    category: Category
    minutes: int
    hours_part: int
    minutes_part: int
    display: str
    percentage: float
    color: str

class ChartSeries(BaseSchema):
    labels: List[str]
    values: List[int]
    colors: List[str]
    label: Optional[str] = None

class DaySummary(BaseSchema):
    date: str
    total_minutes: int
    total_display: str
    activity_count: int
    category_count: int
    top_category: Optional[Category] = None
    breakdown: List[CategoryBreakdown]
    pie: ChartSeries
    bar: ChartSeries

class AnalyticsResponse(BaseSchema):
    date: str
    complete: bool
    total_minutes: int
    message: Optional[str] = None
    summary: Optional[DaySummary] = None

# System schemas
class SystemStatus(BaseSchema):
    status: str
    version: str
    store_backend: str
    identity_backend: str
    store_reachable: bool
    open_sessions: int
