from portfolio_api.models.profile import Profile, Project  # noqa: F401
from portfolio_api.models.analytics_event import AnalyticsEvent  # noqa: F401
