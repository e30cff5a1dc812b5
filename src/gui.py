"""
SONAR - Sensor-Oriented Navigation And Radar
GUI Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Dark-mode Flet interface that renders :class:`dial_engine.DialFrame`
snapshots on a canvas: the dial face, the sweep trail and the fading
points of interest.  The GUI holds no tracking state of its own.
"""

import datetime
import logging
import math
from typing import Optional

import flet as ft
import flet.canvas as cv

from circular_math import distance_on_arc, point_on_circle
from dial_engine import DialFrame, DialVariant
from localization import t

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------
THEME_DARK = {
    "bg": "#0B0E11",
    "card_bg": "#141A22",
    "accent": "#03CC02",
    "text": "#B0BEC5",
    "heading": "#E0E6EC",
    "banner_warn_bg": "#F1C40F",
    "banner_warn_fg": "#000000",
}

COLOR_BG = THEME_DARK["bg"]
COLOR_CARD_BG = THEME_DARK["card_bg"]
COLOR_DIAL = THEME_DARK["accent"]
CARD_CORNER_RADIUS = 12

# Alpha masks applied to the dial colour
INNER_CIRCLE_ALPHA = 0x3F / 0xFF
ARC_ALPHA = 0xBF / 0xFF
TEXT_ALPHA = 0xBF / 0xFF
STROKE_ALPHA = 0x9F / 0xFF

# Dial geometry
DIAL_SIZE = 420
STROKE_WIDTH = 2.5
THIN_STROKE_WIDTH = 1.25
FONT_SIZE = 18
POINT_SIZE = 16
LINE_COUNT = 12
SHORT_LINE_COUNT = 72
SWEEP_TRAIL_DEG = 60
SWEEP_TRAIL_STEPS = 6
POINT_DECELERATION = 0.6

_LOG_LINES = 200


def _card(content: ft.Control, **kwargs) -> ft.Container:
    """Wrap *content* in a Material Design 3 card container."""
    return ft.Container(
        content=content,
        bgcolor=COLOR_CARD_BG,
        border_radius=CARD_CORNER_RADIUS,
        padding=10,
        **kwargs,
    )


def with_alpha(color: str, alpha: float) -> str:
    """Return ``#RRGGBB`` *color* as ``#AARRGGBB`` with opacity *alpha* (0-1)."""
    rgb = color.lstrip("#")[-6:]
    value = int(round(max(0.0, min(1.0, alpha)) * 255))
    return f"#{value:02X}{rgb.upper()}"


def decelerate(fraction: float, factor: float = POINT_DECELERATION) -> float:
    """Decelerating interpolation curve used to fade points out."""
    return 1.0 - (1.0 - fraction) ** (2.0 * factor)


def _stroke(color: str, width: float) -> ft.Paint:
    return ft.Paint(color=color, stroke_width=width,
                    style=ft.PaintingStyle.STROKE)


def _fill(color: str) -> ft.Paint:
    return ft.Paint(color=color, style=ft.PaintingStyle.FILL)


def dial_shapes(frame: DialFrame, size: float = DIAL_SIZE,
                color: str = COLOR_DIAL) -> list:
    """Build the canvas shapes for one frame.

    Compass dials are drawn rotated by the current heading so that the
    rose keeps pointing north; the other variants draw points at their
    detection angle, which already includes the heading.
    """
    cx = cy = size / 2
    radius = size / 2 - STROKE_WIDTH
    max_radius = radius - 2.25 * FONT_SIZE - STROKE_WIDTH / 2
    rotation = frame.current_angle if frame.variant.north_up else 0
    shapes: list = []

    # 1. Dial face
    shapes.append(cv.Circle(cx, cy, radius,
                            paint=_fill(with_alpha(color, INNER_CIRCLE_ALPHA))))
    shapes.append(cv.Circle(cx, cy, radius,
                            paint=_stroke(with_alpha(color, STROKE_ALPHA), STROKE_WIDTH)))
    for ring in (1 / 3, 2 / 3, 1.0):
        shapes.append(cv.Circle(
            cx, cy, max_radius * ring,
            paint=_stroke(with_alpha(color, STROKE_ALPHA), THIN_STROKE_WIDTH),
        ))

    # 2. Scale
    if frame.variant is not DialVariant.PLAIN:
        # Short lines closer together than two strokes would blur into a band
        spacing = distance_on_arc(cx, max_radius, 360 / SHORT_LINE_COUNT)
        draw_short = spacing >= 2 * STROKE_WIDTH
        for i in range(SHORT_LINE_COUNT):
            angle = rotation + i * 360 / SHORT_LINE_COUNT
            long_line = i % (SHORT_LINE_COUNT // LINE_COUNT) == 0
            if not long_line and not draw_short:
                continue
            inner = max_radius * (0.92 if long_line else 0.96)
            x1, y1 = point_on_circle((cx, cy), inner, angle)
            x2, y2 = point_on_circle((cx, cy), max_radius, angle)
            shapes.append(cv.Line(
                x1, y1, x2, y2,
                paint=_stroke(with_alpha(color, STROKE_ALPHA),
                              STROKE_WIDTH if long_line else THIN_STROKE_WIDTH),
            ))

    # 3. Compass rose labels
    if frame.variant is DialVariant.COMPASS:
        keys = ("compass.north", "compass.east", "compass.south", "compass.west")
        for i, key in enumerate(keys):
            x, y = point_on_circle((cx, cy), max_radius + 1.2 * FONT_SIZE,
                                   rotation + i * 90)
            shapes.append(cv.Text(
                x, y, t(key),
                style=ft.TextStyle(size=FONT_SIZE, weight=ft.FontWeight.BOLD,
                                   color=with_alpha(color, TEXT_ALPHA)),
                alignment=ft.Alignment(0, 0),
            ))

    if not frame.running or not frame.has_sensors:
        return shapes

    # 4. Sweep trail, fading behind the leading edge
    sweep = frame.sweep_angle + rotation
    step = SWEEP_TRAIL_DEG / SWEEP_TRAIL_STEPS
    for i in range(SWEEP_TRAIL_STEPS):
        start = sweep - (i + 1) * step
        alpha = ARC_ALPHA * (1 - i / SWEEP_TRAIL_STEPS) / 2
        shapes.append(cv.Arc(
            cx - max_radius, cy - max_radius, 2 * max_radius, 2 * max_radius,
            start_angle=_canvas_radians(start),
            sweep_angle=math.radians(step),
            use_center=True,
            paint=_fill(with_alpha(color, alpha)),
        ))
    lx, ly = point_on_circle((cx, cy), max_radius, sweep)
    shapes.append(cv.Line(cx, cy, lx, ly,
                          paint=_stroke(with_alpha(color, ARC_ALPHA), STROKE_WIDTH)))

    # 5. Points
    base_radius = POINT_SIZE / 2
    for point in frame.points:
        visibility = decelerate(point.visibility)
        size_ratio = 0.75 + 0.5 * (1 - visibility)
        px, py = point_on_circle(
            (cx, cy), (max_radius - base_radius) * point.distance,
            point.angle + rotation,
        )
        shapes.append(cv.Circle(
            px, py, base_radius * size_ratio,
            paint=_fill(with_alpha(point.color or color, visibility)),
        ))

    return shapes


def _canvas_radians(angle_deg: float) -> float:
    """Convert a clockwise-from-north angle to canvas radians (from +x)."""
    return math.radians(angle_deg - 90)


class SonarGUI:
    """Main SONAR window built with Flet.

    Args:
        page: The Flet ``Page`` object.
        auto_mount: Add the layout to the page immediately.
    """

    def __init__(self, page: ft.Page, auto_mount: bool = True):
        self.page = page
        self._theme = dict(THEME_DARK)

        self.lbl_heading = ft.Text(
            "----°", size=28, font_family="RobotoMono",
            color=self._theme["accent"], weight=ft.FontWeight.BOLD,
        )
        self.lbl_sweep = ft.Text(
            "----°", size=28, font_family="RobotoMono",
            color=self._theme["accent"], weight=ft.FontWeight.BOLD,
        )
        self.lbl_points = ft.Text(
            "0", size=28, font_family="RobotoMono",
            color=self._theme["accent"], weight=ft.FontWeight.BOLD,
        )

        self.sensor_banner = ft.Container(
            content=ft.Text(
                t("gui.no_sensors"), size=12,
                color=self._theme["banner_warn_fg"], weight=ft.FontWeight.BOLD,
                text_align=ft.TextAlign.CENTER,
            ),
            bgcolor=self._theme["banner_warn_bg"],
            padding=6,
            border_radius=8,
            alignment=ft.Alignment(0, 0),
            visible=False,
        )

        self.dial_canvas = cv.Canvas(width=DIAL_SIZE, height=DIAL_SIZE, shapes=[])

        self.log_list = ft.ListView(height=80, spacing=2, auto_scroll=True)

        # Callbacks are bound by the controller
        self.btn_start = ft.IconButton(
            icon=ft.Icons.PLAY_CIRCLE, tooltip=t("gui.start"), icon_size=32,
        )
        self.btn_stop = ft.IconButton(
            icon=ft.Icons.STOP_CIRCLE, tooltip=t("gui.stop"), icon_size=32,
        )
        self.btn_shuffle = ft.IconButton(
            icon=ft.Icons.SHUFFLE, tooltip=t("gui.shuffle"), icon_size=28,
        )
        self.variant_selector = ft.SegmentedButton(
            segments=[
                ft.Segment(value=DialVariant.SONAR.value, label=ft.Text(t("gui.sonar"))),
                ft.Segment(value=DialVariant.PLAIN.value, label=ft.Text(t("gui.plain"))),
                ft.Segment(value=DialVariant.COMPASS.value, label=ft.Text(t("gui.compass"))),
            ],
            selected=[DialVariant.SONAR.value],
            allow_multiple_selection=False,
        )

        self._root: Optional[ft.Control] = None
        if auto_mount:
            self.mount()

    # ===================================================================
    # Layout
    # ===================================================================
    def _build_layout(self) -> ft.Control:
        def _readout(key: str, label: ft.Text) -> ft.Row:
            return ft.Row([ft.Text(t(key), size=11), label],
                          alignment=ft.MainAxisAlignment.SPACE_BETWEEN)

        telemetry_card = _card(ft.Column([
            _readout("gui.heading", self.lbl_heading),
            _readout("gui.sweep", self.lbl_sweep),
            _readout("gui.points", self.lbl_points),
        ], spacing=2))

        controls_card = _card(ft.Column([
            ft.Text(t("gui.variant"), weight=ft.FontWeight.BOLD, size=11,
                    color=self._theme["heading"]),
            self.variant_selector,
            ft.Row([self.btn_start, self.btn_stop, self.btn_shuffle],
                   alignment=ft.MainAxisAlignment.SPACE_AROUND),
        ], spacing=4))

        log_card = _card(ft.Column([
            ft.Text(t("gui.log"), weight=ft.FontWeight.BOLD, size=11,
                    color=self._theme["heading"]),
            self.log_list,
        ], spacing=2))

        dial_card = _card(
            ft.Container(content=self.dial_canvas, alignment=ft.Alignment(0, 0)),
            expand=True,
        )

        return ft.Column([
            self.sensor_banner,
            ft.Row([
                ft.Container(content=dial_card, expand=2),
                ft.Container(
                    content=ft.Column([telemetry_card, controls_card], spacing=6),
                    expand=1,
                ),
            ], expand=True, spacing=8),
            ft.Container(content=log_card, height=120),
        ], expand=True, spacing=6)

    def mount(self) -> None:
        """Add the layout to the page."""
        if self._root is None:
            self._root = self._build_layout()
        self.page.add(self._root)

    # ===================================================================
    # Public API
    # ===================================================================
    def draw_frame(self, frame: DialFrame) -> None:
        """Render *frame*; caller should follow up with :meth:`batch_update`."""
        self.lbl_heading.value = f"{frame.current_angle:+04d}°"
        self.lbl_sweep.value = f"{frame.sweep_angle:03d}°"
        self.lbl_points.value = str(len(frame.points))
        self.sensor_banner.visible = not frame.has_sensors
        self.dial_canvas.shapes = dial_shapes(frame)

    def batch_update(self) -> None:
        """Call page.update() once. Use after multiple property changes."""
        try:
            self.page.update()
        except Exception:
            pass

    def write_log(self, message: str) -> None:
        """Append a timestamped message to the log list."""
        timestamp = datetime.datetime.now().strftime("%H:%M:%S")
        entry = ft.Text(f"[{timestamp}] {message}", size=10,
                        font_family="RobotoMono", color="#CCCCCC")
        self.log_list.controls.append(entry)
        if len(self.log_list.controls) > _LOG_LINES:
            self.log_list.controls.pop(0)
        try:
            self.page.update()
        except Exception:
            pass
