"""Synthesized SVG graphics used when no real image is available."""

import math
from dataclasses import dataclass
from html import escape

SVG_MEDIA_TYPE = "image/svg+xml"


@dataclass(frozen=True)
class Palette:
    """Colors for a scenario placeholder."""

    primary: str
    secondary: str
    accent: str


SCENARIO_PALETTES: dict[str, Palette] = {
    "wedding": Palette(primary="#f3e8ff", secondary="#9333ea", accent="#ec4899"),
    "graduation": Palette(primary="#dbeafe", secondary="#2563eb", accent="#059669"),
    "holiday": Palette(primary="#fef3c7", secondary="#d97706", accent="#dc2626"),
    "birthday": Palette(primary="#fed7e2", secondary="#db2777", accent="#7c3aed"),
    "newborn": Palette(primary="#ecfdf5", secondary="#059669", accent="#f59e0b"),
    "vacation": Palette(primary="#e0f2fe", secondary="#0891b2", accent="#ea580c"),
}
DEFAULT_PALETTE = SCENARIO_PALETTES["wedding"]


@dataclass(frozen=True)
class DemoTheme:
    """Background, accent, theme word and icon for a demo scene."""

    background: str
    accent: str
    theme: str
    icon: str


DEMO_THEMES: dict[str, DemoTheme] = {
    "graduation": DemoTheme("#1e3a8a", "#fbbf24", "Academic", "\U0001f393"),
    "wedding": DemoTheme("#be185d", "#f8fafc", "Romantic", "\U0001f48d"),
    "holiday": DemoTheme("#166534", "#ef4444", "Festive", "\U0001f384"),
    "birthday": DemoTheme("#7c3aed", "#fb7185", "Celebratory", "\U0001f382"),
    "newborn": DemoTheme("#0369a1", "#fde047", "Tender", "\U0001f476"),
    "vacation": DemoTheme("#0891b2", "#34d399", "Adventure", "✈️"),
}
DEFAULT_DEMO_THEME = DEMO_THEMES["graduation"]


def render_scene_placeholder(
    *,
    scenario_id: str | None,
    title: str,
    historical_count: int,
    current_count: int,
    caption: str | None = None,
) -> bytes:
    """Render a schematic scene with one marker per person."""
    palette = SCENARIO_PALETTES.get(scenario_id or "", DEFAULT_PALETTE)
    people_count = historical_count + current_count
    markers = []
    for index in range(people_count):
        x = 300 + index * 60 - (people_count - 1) * 30
        y = 180 + math.sin(index * 0.5) * 20
        fill = palette.secondary if index < historical_count else palette.accent
        markers.append(
            f'<circle cx="{x}" cy="{y:.1f}" r="25" fill="{fill}" opacity="0.8"/>'
            f'<circle cx="{x}" cy="{y:.1f}" r="15" fill="white" opacity="0.9"/>'
        )
    subtitle = caption or "AI-Enhanced Family Memory"
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="600" height="400" '
        'viewBox="0 0 600 400">'
        "<defs>"
        '<linearGradient id="bg" x1="0%" y1="0%" x2="100%" y2="100%">'
        f'<stop offset="0%" stop-color="{palette.primary}" stop-opacity="1"/>'
        f'<stop offset="100%" stop-color="{palette.secondary}" stop-opacity="0.3"/>'
        "</linearGradient>"
        '<radialGradient id="glow" cx="50%" cy="50%" r="50%">'
        '<stop offset="0%" stop-color="white" stop-opacity="0.8"/>'
        f'<stop offset="100%" stop-color="{palette.accent}" stop-opacity="0.1"/>'
        "</radialGradient>"
        "</defs>"
        '<rect width="600" height="400" fill="url(#bg)"/>'
        '<circle cx="300" cy="200" r="150" fill="url(#glow)" opacity="0.6"/>'
        f"{''.join(markers)}"
        f'<text x="300" y="320" text-anchor="middle" font-family="Arial" '
        f'font-size="18" font-weight="bold" fill="{palette.secondary}">'
        f"{escape(title)}</text>"
        f'<text x="300" y="340" text-anchor="middle" font-family="Arial" '
        f'font-size="12" fill="{palette.secondary}" opacity="0.8">'
        f"{escape(_truncate(subtitle, 60))}</text>"
        f'<text x="300" y="360" text-anchor="middle" font-family="Arial" '
        f'font-size="10" fill="{palette.secondary}" opacity="0.6">'
        f"{historical_count} Historical + {current_count} Current Photos</text>"
        "</svg>"
    )
    return svg.encode("utf-8")


def render_demo_scene(scenario_id: str | None, title: str) -> bytes:
    """Render the canned demo scene for a scenario."""
    theme = DEMO_THEMES.get(scenario_id or "", DEFAULT_DEMO_THEME)
    figures = (
        (150, 200, 35, "#2d3748", "Historical"),
        (300, 190, 38, "#4a5568", "Family"),
        (450, 205, 32, "#2d3748", "Historical"),
    )
    people = "".join(
        f'<circle cx="{x}" cy="{y}" r="{r}" fill="{color}" opacity="0.85"/>'
        f'<rect x="{x - r // 2}" y="{y + r}" width="{r}" height="60" '
        f'fill="{color}" opacity="0.85" rx="{r // 2}"/>'
        f'<text x="{x}" y="310" text-anchor="middle" font-family="Arial" '
        f'font-size="10" fill="white" opacity="0.7">{label}</text>'
        for x, y, r, color, label in figures
    )
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="600" height="400" '
        'viewBox="0 0 600 400">'
        "<defs>"
        '<linearGradient id="demo-bg" x1="0%" y1="0%" x2="100%" y2="100%">'
        f'<stop offset="0%" stop-color="{theme.background}" stop-opacity="1"/>'
        f'<stop offset="100%" stop-color="{theme.accent}" stop-opacity="0.3"/>'
        "</linearGradient>"
        "</defs>"
        '<rect width="600" height="400" fill="url(#demo-bg)"/>'
        f'<rect x="50" y="300" width="500" height="100" fill="{theme.background}" '
        'opacity="0.2" rx="10"/>'
        f"{people}"
        f'<text x="300" y="140" text-anchor="middle" font-family="Arial" '
        f'font-size="24">{theme.icon}</text>'
        '<rect x="150" y="30" width="300" height="50" fill="white" opacity="0.9" '
        'rx="25"/>'
        f'<text x="300" y="50" text-anchor="middle" font-family="Arial" '
        f'font-size="16" fill="{theme.background}" font-weight="bold">'
        f"{escape(title)}</text>"
        f'<text x="300" y="70" text-anchor="middle" font-family="Arial" '
        f'font-size="12" fill="{theme.background}" opacity="0.8">'
        f"{theme.theme} Family Reunion</text>"
        '<text x="550" y="380" text-anchor="end" font-family="Arial" '
        'font-size="10" fill="white" opacity="0.5">DEMO</text>'
        "</svg>"
    )
    return svg.encode("utf-8")


def render_banner(
    headline: str, caption: str, *, width: int = 600, height: int = 400
) -> bytes:
    """Render a gradient card with a headline and caption."""
    cx = width // 2
    cy = height // 2
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        "<defs>"
        '<linearGradient id="banner-bg" x1="0%" y1="0%" x2="100%" y2="100%">'
        '<stop offset="0%" stop-color="#059669" stop-opacity="1"/>'
        '<stop offset="100%" stop-color="#2563eb" stop-opacity="1"/>'
        "</linearGradient>"
        "</defs>"
        f'<rect width="{width}" height="{height}" fill="url(#banner-bg)"/>'
        f'<circle cx="{cx}" cy="{cy}" r="70" fill="white" opacity="0.9"/>'
        f'<text x="{cx}" y="{cy + 5}" text-anchor="middle" font-family="Arial" '
        f'font-size="16" fill="#059669">{escape(headline)}</text>'
        f'<text x="{cx}" y="{height - 80}" text-anchor="middle" font-family="Arial" '
        f'font-size="12" fill="white" opacity="0.8">'
        f"{escape(_truncate(caption, 40))}</text>"
        "</svg>"
    )
    return svg.encode("utf-8")


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."
