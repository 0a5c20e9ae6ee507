"""Colour palettes for the light and dark themes."""
from typing import Dict

TINT_LIGHT = "#ff4d00"
TINT_DARK = "#ff6b3d"

COLORS: Dict[str, Dict[str, str]] = {
    "light": {
        "text": "#0f172a",
        "background": "#ffffff",
        "tint": TINT_LIGHT,
        "card": "#ffffff",
        "border": "#f1f5f9",
        "subtext": "#64748b",
        "primary": "#ff4d00",
        "secondary": "#ec4899",
        "accent": "#f59e0b",
        "error": "#ef4444",
        "success": "#10b981",
    },
    "dark": {
        "text": "#f8fafc",
        "background": "#020617",
        "tint": TINT_DARK,
        "card": "#0f172a",
        "border": "#1e293b",
        "subtext": "#94a3b8",
        "primary": "#ff6b3d",
        "secondary": "#f472b6",
        "accent": "#fbbf24",
        "error": "#f87171",
        "success": "#34d399",
    },
}

# Fixed status colours, independent of the theme
SUCCESS = "#10b981"
WARNING = "#f59e0b"
DANGER = "#ef4444"
INFO = "#3b82f6"


def palette_for(theme: str) -> Dict[str, str]:
    return COLORS.get(theme, COLORS["light"])
