"""
SONAR - Sensor-Oriented Navigation And Radar
Main Application Entry Point (Controller Pattern)

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Loads config.yaml, wires the orientation source into the dial engine
and drives the engine from a fixed-rate control loop.  Includes
production-grade rotating log files and a GUI log handler.
"""

import logging
import logging.handlers
import threading
import time
from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np
import yaml
import flet as ft

from dial_engine import DialEngine, DialFrame, DialVariant
from gui import COLOR_BG, SonarGUI
from localization import set_language, t
from scan_point import DEFAULT_VISIBILITY_MS, ScanPoint
from simulation_sensor import SimulationSensor

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


# ---------------------------------------------------------------------------
# GUI Logging Handler – forwards log records to the GUI log list
# ---------------------------------------------------------------------------
class GuiLogHandler(logging.Handler):
    """Logging handler that appends formatted records to the GUI log list."""

    def __init__(self, gui):
        super().__init__()
        self._gui = gui

    def emit(self, record):
        try:
            msg = self.format(record)
            self._gui.write_log(msg)
        except Exception:
            self.handleError(record)


# ---------------------------------------------------------------------------
# Default configuration – used as fallback when keys are missing / invalid
# ---------------------------------------------------------------------------
DEFAULT_CONFIG: dict = {
    "language": "en",
    "dial": {
        "variant": "sonar",
        "tick_rate": 50,
    },
    "sweep": {
        "period_ms": 1250,
        "autostart": True,
    },
    "points": {
        "random_count_min": 2,
        "random_count_max": 10,
        "visibility_ms": DEFAULT_VISIBILITY_MS,
        "seed": None,
    },
    "sensor": {
        "enabled": True,
        "sample_rate": 20,
        "slew_rate": 6.0,
        "noise_deg": 2.0,
        "zero_glitch_probability": 0.02,
    },
    "logging": {
        "level": "INFO",
        "file": "sonar.log",
        "console": True,
    },
}


# ---------------------------------------------------------------------------
# Config helpers
# ---------------------------------------------------------------------------
def _deep_merge(defaults: dict, overrides: dict) -> dict:
    """Recursively merge *overrides* into *defaults* (non-destructive)."""
    merged = dict(defaults)
    for key, default_val in defaults.items():
        if key not in overrides:
            logger.warning("Config key '%s' missing, using default %r", key, default_val)
            continue
        override_val = overrides[key]
        if isinstance(default_val, dict) and isinstance(override_val, dict):
            merged[key] = _deep_merge(default_val, override_val)
        elif isinstance(default_val, dict):
            logger.warning(
                "Config key '%s' has wrong type (expected dict), using default", key
            )
        elif not _type_ok(default_val, override_val):
            logger.warning(
                "Config key '%s' has wrong type (expected %s, got %s), using default %r",
                key,
                type(default_val).__name__,
                type(override_val).__name__,
                default_val,
            )
        else:
            merged[key] = override_val
    # Unknown keys are carried along untouched
    for key in overrides:
        if key not in defaults:
            merged[key] = overrides[key]
    return merged


def _type_ok(default, value) -> bool:
    """Return True when *value* is type-compatible with *default*."""
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, (int, float)):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(default, str):
        return isinstance(value, str)
    return True


def load_config(path: Optional[str] = None) -> dict:
    """Load configuration from a YAML file with validation.

    Missing keys or wrong types fall back to ``DEFAULT_CONFIG``.
    If the file cannot be read or parsed the full defaults are returned.

    Args:
        path: Path to config file.  Defaults to ``config.yaml`` in the
              repository root.

    Returns:
        Validated configuration dictionary.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        if not isinstance(raw, dict):
            logger.warning("Config file did not produce a dict – using defaults")
            return dict(DEFAULT_CONFIG)
        logger.info("Configuration loaded from %s", config_path)
        return _deep_merge(DEFAULT_CONFIG, raw)
    except FileNotFoundError:
        logger.warning("Config file not found: %s – using defaults", config_path)
        return dict(DEFAULT_CONFIG)
    except yaml.YAMLError as exc:
        logger.error("Error parsing config file: %s – using defaults", exc)
        return dict(DEFAULT_CONFIG)


def random_points(rng: np.random.Generator, count_min: int = 2,
                  count_max: int = 10,
                  visibility_ms: int = DEFAULT_VISIBILITY_MS) -> List[ScanPoint]:
    """Generate between *count_min* and *count_max* - 1 random demo points."""
    count_max = max(count_max, count_min + 1)
    count = int(rng.integers(count_min, count_max))
    return [
        ScanPoint(
            angle=int(rng.integers(360)),
            distance=float(rng.random()),
            visibility_ms=visibility_ms,
        )
        for _ in range(count)
    ]


# ---------------------------------------------------------------------------
# Main controller
# ---------------------------------------------------------------------------
class SonarController:
    """Controller that bridges the orientation source, the engine and the GUI.

    The control loop thread is the engine's single update thread; the
    sensor thread only ever talks to the engine through its sample queue.
    Everything else that touches the engine takes ``self._lock``.
    """

    def __init__(self, config: Optional[dict] = None, gui: Optional[SonarGUI] = None,
                 autostart: bool = True):
        """Initialise the controller and (optionally) its background threads.

        Args:
            config:    Validated configuration dictionary.  When ``None``,
                       the default ``config.yaml`` is loaded.
            gui:       Optional :class:`SonarGUI`; ``None`` for headless use.
            autostart: Start the sensor and control threads immediately.
        """
        if config is None:
            config = load_config()
        self.config = config

        self._setup_logging()

        self._lock = threading.Lock()
        self._running = False
        self._threads: List[threading.Thread] = []

        dial_cfg = config.get("dial", {})
        sweep_cfg = config.get("sweep", {})
        sensor_cfg = config.get("sensor", {})
        points_cfg = config.get("points", {})

        self.engine = DialEngine(
            variant=DialVariant.from_name(dial_cfg.get("variant", "sonar")),
            period_ms=sweep_cfg.get("period_ms", 1250),
            has_sensors=bool(sensor_cfg.get("enabled", True)),
        )

        self.sensor: Optional[SimulationSensor] = None
        if sensor_cfg.get("enabled", True):
            self.sensor = SimulationSensor(
                noise_deg=sensor_cfg.get("noise_deg", 0.0),
                zero_glitch_probability=sensor_cfg.get("zero_glitch_probability", 0.0),
                seed=points_cfg.get("seed"),
            )
            self.sensor.slew_rate = sensor_cfg.get("slew_rate", 0.0)
        else:
            logger.warning("Orientation sensors disabled – detection will be skipped")

        self._rng = np.random.default_rng(points_cfg.get("seed"))
        self.randomize_points()

        self.gui = gui
        self._gui_handler: Optional[GuiLogHandler] = None
        if gui is not None:
            self._gui_handler = GuiLogHandler(gui)
            self._gui_handler.setLevel(logging.INFO)
            self._gui_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
            logging.getLogger().addHandler(self._gui_handler)

            gui.btn_start.on_click = lambda e: self.start_sweep()
            gui.btn_stop.on_click = lambda e: self.stop_sweep()
            gui.btn_shuffle.on_click = lambda e: self.randomize_points()
            gui.variant_selector.selected = [self.engine.variant.value]
            gui.variant_selector.on_change = lambda e: self.set_variant(
                next(iter(e.control.selected), "sonar")
            )

        if sweep_cfg.get("autostart", True):
            self.start_sweep()

        if autostart:
            self.start()

    # ---- Logging --------------------------------------------------------
    def _setup_logging(self):
        """Configure the root logger with RotatingFileHandler."""
        log_cfg = self.config.get("logging", {})
        level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
        log_file = log_cfg.get("file")
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

        handlers: list = []
        if log_cfg.get("console", True):
            handlers.append(logging.StreamHandler())
        if log_file:
            rotating = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=5 * 1024 * 1024,   # 5 MB
                backupCount=5,
                delay=True,
            )
            handlers.append(rotating)

        logging.basicConfig(
            level=level,
            format=fmt,
            handlers=handlers or [logging.StreamHandler()],
        )

    # ---- Points ---------------------------------------------------------
    def set_points(self, points: Iterable[ScanPoint]) -> None:
        with self._lock:
            self.engine.set_points(points)

    def add_points(self, *points: ScanPoint) -> None:
        with self._lock:
            self.engine.add_points(*points)

    def randomize_points(self) -> None:
        """Replace the point set with a fresh batch of random points."""
        cfg = self.config.get("points", {})
        self.set_points(random_points(
            self._rng,
            count_min=cfg.get("random_count_min", 2),
            count_max=cfg.get("random_count_max", 10),
            visibility_ms=cfg.get("visibility_ms", DEFAULT_VISIBILITY_MS),
        ))

    # ---- Sweep / variant ------------------------------------------------
    def start_sweep(self) -> None:
        with self._lock:
            self.engine.start()

    def stop_sweep(self) -> None:
        with self._lock:
            self.engine.stop()

    def set_variant(self, name: str) -> None:
        variant = DialVariant.from_name(name)
        with self._lock:
            self.engine.set_variant(variant)
        logger.info("Dial variant changed to %s", variant.value)

    # ---- Update cycle ---------------------------------------------------
    def step(self, elapsed_ms: float, now_ms: Optional[float] = None) -> DialFrame:
        """Run one engine tick and push the frame to the GUI."""
        with self._lock:
            frame = self.engine.tick(elapsed_ms, now_ms)
        if self.gui is not None:
            self.gui.draw_frame(frame)
            self.gui.batch_update()
        return frame

    def poll_sensor(self, dt: float) -> None:
        """Advance the simulated sensor by *dt* seconds and queue one reading."""
        if self.sensor is None:
            return
        self.sensor.update(dt)
        self.engine.submit_orientation(self.sensor.read())

    # ---- Threads --------------------------------------------------------
    def start(self) -> None:
        """Start the control loop and, when enabled, the sensor loop."""
        if self._running:
            return
        self._running = True
        self._threads = [
            threading.Thread(target=self._control_loop, name="sonar-control", daemon=True),
        ]
        if self.sensor is not None:
            self._threads.append(
                threading.Thread(target=self._sensor_loop, name="sonar-sensor", daemon=True)
            )
        for thread in self._threads:
            thread.start()

    def shutdown(self) -> None:
        """Stop the background threads and the sweep, and detach the GUI log handler."""
        logger.info("Shutting down SONAR")
        self._running = False
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join(timeout=1.0)
        self._threads = []
        self.stop_sweep()
        if self._gui_handler is not None:
            logging.getLogger().removeHandler(self._gui_handler)
            self._gui_handler = None

    def _sensor_loop(self):
        sample_rate = self.config.get("sensor", {}).get("sample_rate", 20)
        interval = 1.0 / max(sample_rate, 1)
        last = time.time()
        while self._running:
            now = time.time()
            self.poll_sensor(now - last)
            last = now
            time.sleep(interval)

    def _control_loop(self):
        """Fixed-rate loop driving the engine.

        Any unexpected error stops the sweep and is logged; the loop keeps
        running so the sweep can be restarted from the GUI.
        """
        tick_rate = self.config.get("dial", {}).get("tick_rate", 50)
        interval = 1.0 / max(tick_rate, 1)
        last = time.time()

        while self._running:
            try:
                now = time.time()
                self.step((now - last) * 1000.0, now * 1000.0)
                last = now
            except Exception:
                logger.exception("Control loop error – stopping sweep")
                self.stop_sweep()
            time.sleep(interval)


def main(page: ft.Page):
    """Flet main entry point – configures the page and starts the controller."""
    config = load_config()
    try:
        set_language(config.get("language", "en"))
    except ValueError as exc:
        logger.warning("%s – falling back to English", exc)

    page.title = f"{t('app.title')} – {t('app.subtitle')}"
    page.bgcolor = COLOR_BG
    page.theme_mode = ft.ThemeMode.DARK
    page.window.width = 900
    page.window.height = 640

    gui = SonarGUI(page)
    controller = SonarController(config=config, gui=gui)
    # Keep a reference on the page to prevent garbage collection
    page._sonar_controller = controller


def run():
    """Console-script entry point."""
    ft.run(main)


if __name__ == "__main__":
    run()
