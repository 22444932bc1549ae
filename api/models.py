"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Metrics Models
# ============================================================================

class PeriodMetrics(BaseModel):
    """Reduction of one period's rows."""
    conversations: int
    conversions: int
    qualified: int
    disqualified: int
    lost_leads: int
    conversion_rate: float
    qualification_rate: float
    avg_conversion_time_ms: Optional[float] = None
    peak_hour: Optional[int] = None
    peak_hour_volume: int


class DateRangeModel(BaseModel):
    start: datetime
    end: datetime


class FunnelStepModel(BaseModel):
    key: str
    label: str
    value: int
    percentage: float


class ComparisonItemModel(BaseModel):
    """One line of the period-over-period comparison."""
    label: str
    current: str
    previous: str
    change: str
    trend: str  # "higher" or "lower" is better
    is_bad: bool


class MetricsResponse(BaseModel):
    """Dashboard payload for the selected period."""
    period: str
    period_label: str
    show_change: bool
    date_range: DateRangeModel
    previous_range: Optional[DateRangeModel] = None
    period_days: int
    current: PeriodMetrics
    previous: PeriodMetrics
    avg_daily_volume: float
    previous_avg_daily_volume: float
    conversations_change: float
    conversions_change: float
    qualified_change: float
    funnel: List[FunnelStepModel]
    executive_summary: List[str]
    comparison: List[ComparisonItemModel]
    skipped_rows: int
    refreshed_at: datetime
    realtime: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "period": "7days",
                "period_label": "Last 7 days",
                "show_change": True,
                "date_range": {
                    "start": "2025-01-01T00:00:00-03:00",
                    "end": "2025-01-08T23:59:59.999999-03:00"
                },
                "period_days": 9,
                "current": {
                    "conversations": 120,
                    "conversions": 30,
                    "qualified": 60,
                    "disqualified": 10,
                    "lost_leads": 90,
                    "conversion_rate": 25.0,
                    "qualification_rate": 50.0,
                    "avg_conversion_time_ms": 7200000,
                    "peak_hour": 14,
                    "peak_hour_volume": 18
                },
                "conversations_change": 20.0,
                "skipped_rows": 0
            }
        }


class RealtimeResponse(BaseModel):
    active: bool
    table: str


# ============================================================================
# Conversation Models
# ============================================================================

class SessionListResponse(BaseModel):
    sessions: List[str]
    total_count: int


class ChatMessageModel(BaseModel):
    id: Optional[str] = None
    session_id: str
    type: str
    content: str
    created_at: Optional[datetime] = None


class MessageListResponse(BaseModel):
    session_id: str
    messages: List[ChatMessageModel]


class DisableAgentResponse(BaseModel):
    lead_id: str
    agent_on: bool = False


# ============================================================================
# Integration Models
# ============================================================================

class ConnectionRequest(BaseModel):
    """Project credentials for the setup steps."""
    project_url: str = Field(..., description="Supabase project URL (https://<ref>.supabase.co)")
    anon_key: str = Field(..., description="Public (anon) API key of the project")

    class Config:
        json_schema_extra = {
            "example": {
                "project_url": "https://abcdefgh.supabase.co",
                "anon_key": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."
            }
        }


class IntegrationRequest(ConnectionRequest):
    selected_table: str = Field(..., description="Table holding one row per lead")


class IntegrationResponse(BaseModel):
    configured: bool
    project_url: Optional[str] = None
    selected_table: Optional[str] = None
    updated_at: Optional[datetime] = None


class ConnectionTestResponse(BaseModel):
    success: bool
    error: Optional[str] = None


class TableListResponse(BaseModel):
    tables: List[str]
    error: Optional[str] = None


# ============================================================================
# Preferences and Agent Settings Models
# ============================================================================

class PreferencesModel(BaseModel):
    show_conversas: bool = True
    show_conversoes: bool = True
    show_qualificados: bool = True
    show_desqualificados: bool = True


class PreferencesUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    show_conversas: Optional[bool] = None
    show_conversoes: Optional[bool] = None
    show_qualificados: Optional[bool] = None
    show_desqualificados: Optional[bool] = None


class AgentSettingsModel(BaseModel):
    prompt: str


# ============================================================================
# Access Control Models
# ============================================================================

class UserControlResponse(BaseModel):
    user_id: str
    email: str
    role: str
    approved: bool
    status: str
    approved_by: Optional[str] = None
    created_at: Optional[datetime] = None


class UserListResponse(BaseModel):
    users: List[UserControlResponse]
    total_count: int


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    action: Optional[str] = None
    retry: Optional[bool] = None

    class Config:
        json_schema_extra = {
            "example": {
                "detail": "Connect your Supabase project to see the dashboard",
                "action": "setup"
            }
        }
