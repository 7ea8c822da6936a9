"""Closed enumerations and defaults for notification registration."""

from __future__ import annotations

AREA_HEADER = "notification-area-header"
AREA_DASHBOARD_TOP = "notification-area-dashboard-top"
AREA_OVERLAYS = "notification-area-overlays"
AREA_BANNERS_ABOVE_NAV = "notification-area-banners-above-nav"
AREA_BANNERS_BELOW_NAV = "notification-area-banners-below-nav"
NOTIFICATION_AREAS = frozenset(
    {
        AREA_HEADER,
        AREA_DASHBOARD_TOP,
        AREA_OVERLAYS,
        AREA_BANNERS_ABOVE_NAV,
        AREA_BANNERS_BELOW_NAV,
    }
)

VIEW_CONTEXT_MAIN_DASHBOARD = "mainDashboard"
VIEW_CONTEXT_MAIN_DASHBOARD_VIEW_ONLY = "mainDashboardViewOnly"
VIEW_CONTEXT_ENTITY_DASHBOARD = "entityDashboard"
VIEW_CONTEXT_ENTITY_DASHBOARD_VIEW_ONLY = "entityDashboardViewOnly"
VIEW_CONTEXT_SETTINGS = "settings"
VIEW_CONTEXT_SPLASH = "splash"
VIEW_CONTEXT_ADMIN_BAR = "adminBar"
VIEW_CONTEXT_WP_DASHBOARD = "wpDashboard"
VIEW_CONTEXTS = frozenset(
    {
        VIEW_CONTEXT_MAIN_DASHBOARD,
        VIEW_CONTEXT_MAIN_DASHBOARD_VIEW_ONLY,
        VIEW_CONTEXT_ENTITY_DASHBOARD,
        VIEW_CONTEXT_ENTITY_DASHBOARD_VIEW_ONLY,
        VIEW_CONTEXT_SETTINGS,
        VIEW_CONTEXT_SPLASH,
        VIEW_CONTEXT_ADMIN_BAR,
        VIEW_CONTEXT_WP_DASHBOARD,
    }
)

# "default" doubles as the sentinel for notifications registered without a group.
GROUP_DEFAULT = "default"
GROUP_SETUP_CTAS = "setup-ctas"
NOTIFICATION_GROUPS = frozenset({GROUP_DEFAULT, GROUP_SETUP_CTAS})

PRIORITY_ERROR_HIGH = 30
PRIORITY_ERROR_LOW = 60
PRIORITY_WARNING = 100
PRIORITY_INFO = 150
PRIORITY_SETUP_CTA_HIGH = 150
PRIORITY_SETUP_CTA_LOW = 200
DEFAULT_PRIORITY = 10

MAX_NOTIFICATION_ID_LENGTH = 191
