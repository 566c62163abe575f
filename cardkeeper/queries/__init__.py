"""Read-side aggregation over fetched rows."""

from cardkeeper.queries.dashboard import DashboardSummary, build_dashboard, upcoming_reminders

__all__ = ["DashboardSummary", "build_dashboard", "upcoming_reminders"]
