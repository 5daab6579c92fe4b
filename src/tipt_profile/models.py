"""Data models for profiles, palettes and analytics."""

from dataclasses import dataclass, field
from datetime import datetime

PROFILE_VIEW = "profile_view"
LINK_CLICK = "link_click"
EVENT_TYPES = (PROFILE_VIEW, LINK_CLICK)


@dataclass
class ProfileDocument:
    """The persisted record describing one public tip page."""

    profile_id: str
    domain: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    alt_name: str | None = None
    email: str | None = None
    city: str | None = None
    state: str | None = None
    description: str | None = None
    profile_image_url: str | None = None
    profile_banner_url: str | None = None
    banner_colors: list[str] | None = None  # [primary, secondary, highlight]
    venmo_url: str | None = None
    paypal_url: str | None = None
    spotify_url: str | None = None
    youtube_url: str | None = None
    tiktok_url: str | None = None
    accepts_apple_pay: bool = False
    accepts_google_pay: bool = False
    accepts_samsung_pay: bool = False
    images: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@dataclass(frozen=True)
class ColorCandidate:
    """A quantized color bucket scored for palette selection."""

    hex: str
    rgb: tuple[int, int, int]
    count: int
    brightness: int  # r + g + b, 0-765
    saturation: int  # max - min, 0-255
    score: float


@dataclass
class EventDetail:
    """Optional context supplied by the caller when recording an event."""

    link_type: str | None = None
    link_url: str | None = None
    visitor_id: str | None = None
    location: str | None = None
    user_agent: str | None = None
    referrer: str | None = None


@dataclass(frozen=True)
class AnalyticsEvent:
    """A single immutable view or click record."""

    event_id: str
    profile_id: str
    event_type: str
    visitor_id: str | None
    created_at: datetime
    link_type: str | None = None
    link_url: str | None = None
    location: str | None = None
    user_agent: str | None = None
    referrer: str = "direct"


@dataclass
class PeriodStats:
    """View and click counters for one month or day bucket."""

    views: int = 0
    clicks: int = 0


@dataclass
class AnalyticsSummary:
    """Materialized counters over a profile's event log."""

    profile_id: str
    total_profile_views: int = 0
    total_link_clicks: int = 0
    monthly_stats: dict[str, PeriodStats] = field(default_factory=dict)  # "YYYY-MM"
    daily_stats: dict[str, PeriodStats] = field(default_factory=dict)  # "YYYY-MM-DD"
    link_stats: dict[str, int] = field(default_factory=dict)
    last_updated: datetime | None = None


@dataclass(frozen=True)
class MonthlyStat:
    month: str  # short label, e.g. "Jan"
    views: int
    clicks: int


@dataclass(frozen=True)
class TopLink:
    link: str
    clicks: int
    percentage: int


@dataclass
class DashboardView:
    """Everything the owner dashboard renders for one profile."""

    profile_views: int = 0
    link_clicks: int = 0
    click_rate: float = 0
    recent_activity: list[AnalyticsEvent] = field(default_factory=list)
    monthly_stats: list[MonthlyStat] = field(default_factory=list)
    top_links: list[TopLink] = field(default_factory=list)


@dataclass(frozen=True)
class VisitorLocation:
    """Coarse visitor location resolved from the request IP."""

    city: str | None = None
    region: str | None = None
    country: str | None = None
    location: str = "Unknown"
