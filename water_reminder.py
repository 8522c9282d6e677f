#!/usr/bin/env python3
"""
Water reminder tray utility implemented in Python with Qt (PySide6).

A background scheduler checks once per second whether the configured
interval has elapsed since the reminder was last shown and, when it has,
asks the window to surface itself. The interval can be changed live from
the tray settings dialog and is stored as a single JSON integer in the
per-user config directory.
"""

from __future__ import annotations

import argparse
import json
import sys
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from PySide6 import QtCore, QtGui, QtWidgets  # LGPL-licensed Qt bindings


# ===== Storage helpers ======================================================


APP_NAME = "WaterReminder"
SETTINGS_FILENAME = "settings.json"

DEFAULT_INTERVAL_SECONDS = 60 * 60          # 1 hour
MIN_INTERVAL_SECONDS = 1
MAX_INTERVAL_SECONDS = 7 * 24 * 3600       # 1 week
DIALOG_MIN_INTERVAL_SECONDS = 10
DIALOG_MAX_INTERVAL_SECONDS = 24 * 3600 + 59 * 60 + 59
TICK_SECONDS = 1.0
PREVIEW_DELAY_MS = 2000

PRESETS: List[Tuple[str, int]] = [
    ("15m", 15 * 60),
    ("30m", 30 * 60),
    ("45m", 45 * 60),
    ("1h", 60 * 60),
    ("2h", 2 * 60 * 60),
]


def config_directory() -> Path:
    """Return the platform-standard per-user config directory for the app."""
    location = QtCore.QStandardPaths.writableLocation(
        QtCore.QStandardPaths.StandardLocation.GenericConfigLocation
    )
    if location:
        return Path(location) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def settings_path() -> Path:
    return config_directory() / SETTINGS_FILENAME


# ===== Utility helpers ======================================================


def split_interval(seconds: int) -> Tuple[int, int, int]:
    """Split seconds into (hours, minutes, seconds)."""
    hours, remainder = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(remainder, 60)
    return hours, minutes, secs


def combine_interval(hours: int, minutes: int, seconds: int) -> int:
    """Join dialog fields into seconds, never shorter than the dialog minimum."""
    total = hours * 3600 + minutes * 60 + seconds
    return max(DIALOG_MIN_INTERVAL_SECONDS, total)


def format_interval(seconds: int) -> str:
    """Format an interval (e.g. 5400 seconds) into a readable string."""
    hours, minutes, secs = split_interval(seconds)

    parts: List[str] = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if secs:
        parts.append(f"{secs} second{'s' if secs != 1 else ''}")

    if not parts:
        return "0 seconds"
    return " ".join(parts)


def format_short_duration(seconds: float) -> str:
    """Return a short h/m/s text for the tray countdown."""
    if seconds <= 0:
        return "now"

    hours, minutes, secs = split_interval(int(seconds))

    parts: List[str] = []
    if hours:
        parts.append(f"{hours}h")
    if minutes or hours:
        parts.append(f"{minutes}m")
    if hours == 0:
        parts.append(f"{secs}s")
    return " ".join(parts)


def create_droplet_pixmap(size: int = 64) -> QtGui.QPixmap:
    """Draw the water droplet used as tray icon."""
    pixmap = QtGui.QPixmap(size, size)
    pixmap.fill(QtCore.Qt.GlobalColor.transparent)

    painter = QtGui.QPainter(pixmap)
    painter.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing)

    gradient = QtGui.QLinearGradient(0, 0, 0, size)
    gradient.setColorAt(0.0, QtGui.QColor(120, 205, 255))
    gradient.setColorAt(1.0, QtGui.QColor(20, 110, 230))

    path = QtGui.QPainterPath()
    path.moveTo(size / 2, size * 0.06)
    path.cubicTo(size * 0.12, size * 0.42, size * 0.18, size * 0.94, size / 2, size * 0.94)
    path.cubicTo(size * 0.82, size * 0.94, size * 0.88, size * 0.42, size / 2, size * 0.06)

    painter.fillPath(path, gradient)
    painter.end()
    return pixmap


# ===== Errors ===============================================================


class ReminderError(Exception):
    """Base class for errors reported to the user."""


class InvalidIntervalError(ReminderError, ValueError):
    """Raised when an interval is not a positive whole number of seconds."""


class SettingsWriteError(ReminderError):
    """Raised when the interval cannot be written to disk."""


def validate_interval(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidIntervalError(f"interval must be a whole number of seconds, got {value!r}")
    if value < MIN_INTERVAL_SECONDS:
        raise InvalidIntervalError(f"interval must be at least {MIN_INTERVAL_SECONDS} second, got {value}")
    if value > MAX_INTERVAL_SECONDS:
        raise InvalidIntervalError(f"interval must be at most {MAX_INTERVAL_SECONDS} seconds (1 week)")
    return value


# ===== Settings persistence =================================================


class SettingsStore:
    """Reads and writes the interval as a single JSON integer."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else settings_path()

    def load(self) -> Optional[int]:
        """Return the stored interval, or None when there is nothing usable on disk."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            print(f"[WaterReminder] Could not read {self.path}: {exc}", file=sys.stderr)
            return None

        try:
            return validate_interval(json.loads(raw))
        except (ValueError, RecursionError) as exc:
            print(f"[WaterReminder] Ignoring settings in {self.path}: {exc}", file=sys.stderr)
            return None

    def save(self, interval: int) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(interval), encoding="utf-8")
        except OSError as exc:
            raise SettingsWriteError(f"failed to save settings to {self.path}: {exc}") from exc


def load_initial_interval(store: SettingsStore) -> int:
    saved = store.load()
    if saved is None:
        return DEFAULT_INTERVAL_SECONDS
    return saved


# ===== Reminder state =======================================================


class ReminderState:
    """Interval and last-shown baseline shared by the scheduler and the commands.

    Each field is guarded by its own lock; there is no cross-field atomicity,
    so a tick may observe an interval update one tick late.
    """

    def __init__(self, interval: int = DEFAULT_INTERVAL_SECONDS,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._interval = validate_interval(interval)
        self._interval_lock = threading.Lock()
        self._last_shown = clock()
        self._last_shown_lock = threading.Lock()

    @property
    def interval(self) -> int:
        with self._interval_lock:
            return self._interval

    def set_interval(self, value: object) -> int:
        interval = validate_interval(value)
        with self._interval_lock:
            self._interval = interval
        return interval

    @property
    def last_shown(self) -> float:
        with self._last_shown_lock:
            return self._last_shown

    def mark_shown(self, at: Optional[float] = None) -> None:
        moment = self.clock() if at is None else at
        with self._last_shown_lock:
            self._last_shown = moment

    def seconds_until_next(self, now: Optional[float] = None) -> float:
        if now is None:
            now = self.clock()
        return max(0.0, self.interval - (now - self.last_shown))


# ===== Reminder scheduler ===================================================


TriggerCallback = Callable[[], None]


class ReminderScheduler:
    """Polls the reminder state once per tick and fires the trigger when due."""

    def __init__(self, state: ReminderState, on_trigger: TriggerCallback,
                 tick_seconds: float = TICK_SECONDS) -> None:
        self.state = state
        self._on_trigger = on_trigger
        self._tick_seconds = float(tick_seconds)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> None:
        now = self.state.clock()
        if now - self.state.last_shown < self.state.interval:
            return

        try:
            self._on_trigger()
        except Exception as exc:  # noqa: BLE001
            print(f"[WaterReminder] Failed to show reminder: {exc}", file=sys.stderr)
        # Reset even when the trigger failed.
        self.state.mark_shown(now)

    def start(self) -> bool:
        with self._lock:
            if self.is_running:
                return False

            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run,
                name="water-reminder-scheduler",
                daemon=True,
            )
            self._thread.start()
            return True

    def stop(self, timeout_seconds: float = 5.0) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()

        thread.join(timeout=timeout_seconds)

        with self._lock:
            if self._thread is thread:
                self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self._tick_seconds):
            self.tick()


# ===== Command surface ======================================================


class ReminderCommands:
    """Entry points the window, tray and CLI call into."""

    def __init__(self, state: ReminderState, store: SettingsStore,
                 window: Optional[QtWidgets.QWidget] = None,
                 on_remind: Optional[Callable[[], None]] = None) -> None:
        self.state = state
        self.store = store
        self.window = window
        self.on_remind = on_remind

    def hide(self) -> None:
        if self.window is None:
            return
        try:
            self.window.hide()
        except RuntimeError as exc:
            print(f"[WaterReminder] Failed to hide window: {exc}", file=sys.stderr)

    def show(self) -> None:
        if self.window is None:
            return
        try:
            self.window.setWindowFlag(QtCore.Qt.WindowType.WindowStaysOnTopHint, True)
            self.window.show()
        except RuntimeError as exc:
            print(f"[WaterReminder] Failed to show window: {exc}", file=sys.stderr)
            return
        try:
            self.window.raise_()
            self.window.activateWindow()
        except RuntimeError as exc:
            print(f"[WaterReminder] Failed to focus window: {exc}", file=sys.stderr)

    def get_interval(self) -> int:
        return self.state.interval

    def set_interval(self, value: object) -> int:
        """Apply a new interval immediately and persist it.

        The last-shown baseline is left alone, so shortening the interval
        below the time already elapsed fires on the next tick. Raises
        InvalidIntervalError before touching the state, or SettingsWriteError
        after the live value was already updated.
        """
        interval = self.state.set_interval(value)
        self.store.save(interval)
        return interval

    def remind_now(self) -> None:
        """Show the reminder without moving the schedule."""
        if self.on_remind is not None:
            self.on_remind()


# ===== Presentation shell ===================================================


class ReminderSignals(QtCore.QObject):
    """Carries scheduler triggers from the worker thread into the GUI thread."""

    showReminder = QtCore.Signal()


class ReminderPresenter(QtCore.QObject):
    """Surfaces the window whenever showReminder arrives in the GUI thread."""

    def __init__(self, commands: ReminderCommands, refresh: Optional[Callable[[], None]] = None,
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.commands = commands
        self.refresh = refresh

    @QtCore.Slot()
    def present_reminder(self) -> None:
        if self.refresh is not None:
            self.refresh()
        self.commands.show()


def connect_scheduler(app: QtCore.QCoreApplication, signals: ReminderSignals,
                      presenter: ReminderPresenter, scheduler: ReminderScheduler) -> None:
    """Route scheduler triggers to the presenter and stop the scheduler on quit."""
    signals.showReminder.connect(presenter.present_reminder)
    app.aboutToQuit.connect(scheduler.stop)


class ReminderWindow(QtWidgets.QWidget):
    """Small always-on-top window with the reminder text."""

    dismissed = QtCore.Signal()
    settingsRequested = QtCore.Signal()

    def __init__(self, state: ReminderState, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent, QtCore.Qt.WindowType.Tool | QtCore.Qt.WindowType.WindowStaysOnTopHint)
        self.state = state
        self.setWindowTitle("Water Reminder")
        self.setMinimumWidth(320)

        self.title_label = QtWidgets.QLabel("Time for some water")
        title_font = self.title_label.font()
        title_font.setPointSize(18)
        title_font.setBold(True)
        self.title_label.setFont(title_font)

        self.message_label = QtWidgets.QLabel()
        self.message_label.setWordWrap(True)

        drink_button = QtWidgets.QPushButton("Drink")
        drink_button.setDefault(True)
        drink_button.clicked.connect(self.dismissed)
        later_button = QtWidgets.QPushButton("Later")
        later_button.clicked.connect(self.dismissed)
        settings_button = QtWidgets.QPushButton("Settings...")
        settings_button.clicked.connect(self.settingsRequested)

        buttons = QtWidgets.QHBoxLayout()
        buttons.addWidget(settings_button)
        buttons.addStretch(1)
        buttons.addWidget(later_button)
        buttons.addWidget(drink_button)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(20, 18, 20, 18)
        layout.addWidget(self.title_label)
        layout.addWidget(self.message_label)
        layout.addLayout(buttons)

        self.refresh_message()

    def refresh_message(self) -> None:
        interval_text = format_interval(self.state.interval)
        self.message_label.setText(f"Take a sip of water.\nYou will be reminded every {interval_text}.")


class SettingsDialog(QtWidgets.QDialog):
    """Interval editor with hour/minute/second fields and presets."""

    def __init__(self, commands: ReminderCommands, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Water Reminder – Settings")
        self.commands = commands

        self.hours_spin = self._make_spin(24, " h")
        self.minutes_spin = self._make_spin(59, " min")
        self.seconds_spin = self._make_spin(59, " s")

        fields = QtWidgets.QHBoxLayout()
        fields.addWidget(self.hours_spin)
        fields.addWidget(self.minutes_spin)
        fields.addWidget(self.seconds_spin)

        presets = QtWidgets.QHBoxLayout()
        for label, seconds in PRESETS:
            button = QtWidgets.QPushButton(label)
            button.clicked.connect(lambda _checked=False, value=seconds: self.apply_preset(value))
            presets.addWidget(button)

        button_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Save | QtWidgets.QDialogButtonBox.StandardButton.Cancel
        )
        button_box.accepted.connect(self.save_changes)
        button_box.rejected.connect(self.reject)

        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(QtWidgets.QLabel("Remind me to drink water every..."))
        layout.addLayout(fields)
        layout.addLayout(presets)
        layout.addWidget(button_box)

    @staticmethod
    def _make_spin(maximum: int, suffix: str) -> QtWidgets.QSpinBox:
        spin = QtWidgets.QSpinBox()
        spin.setRange(0, maximum)
        spin.setSuffix(suffix)
        return spin

    def showEvent(self, event: QtGui.QShowEvent) -> None:  # type: ignore[override]
        self.apply_preset(self.commands.get_interval())
        super().showEvent(event)

    def apply_preset(self, seconds: int) -> None:
        hours, minutes, secs = split_interval(min(seconds, DIALOG_MAX_INTERVAL_SECONDS))
        self.hours_spin.setValue(hours)
        self.minutes_spin.setValue(minutes)
        self.seconds_spin.setValue(secs)

    def selected_interval(self) -> int:
        return combine_interval(self.hours_spin.value(), self.minutes_spin.value(), self.seconds_spin.value())

    def save_changes(self) -> None:
        try:
            self.commands.set_interval(self.selected_interval())
        except ReminderError as exc:
            QtWidgets.QMessageBox.warning(self, "Water Reminder", f"Could not save the interval:\n{exc}")
            return
        self.accept()


class TrayController(QtCore.QObject):
    """System-tray icon with the countdown and quick commands."""

    def __init__(self, state: ReminderState, commands: ReminderCommands,
                 settings_dialog: SettingsDialog, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.state = state
        self.commands = commands
        self.settings_dialog = settings_dialog

        self.tray = QtWidgets.QSystemTrayIcon(QtGui.QIcon(create_droplet_pixmap()), self)

        self.menu = QtWidgets.QMenu()
        self.remaining_action = self.menu.addAction("Remaining: --")
        self.remaining_action.setEnabled(False)
        self.menu.addSeparator()
        open_action = self.menu.addAction("Open Water Reminder")
        open_action.triggered.connect(self.commands.remind_now)

        settings_action = self.menu.addAction("Settings...")
        settings_action.triggered.connect(self.show_settings)

        quit_action = self.menu.addAction("Quit")
        quit_action.triggered.connect(QtWidgets.QApplication.instance().quit)

        self.tray.setContextMenu(self.menu)
        self.tray.activated.connect(self._handle_activation)
        self.tray.setToolTip("Water Reminder")
        self.tray.show()

        self.countdown_timer = QtCore.QTimer(self)
        self.countdown_timer.setInterval(1000)
        self.countdown_timer.timeout.connect(self.update_remaining_display)
        self.countdown_timer.start()

    def _handle_activation(self, reason: QtWidgets.QSystemTrayIcon.ActivationReason) -> None:
        if reason == QtWidgets.QSystemTrayIcon.ActivationReason.Trigger:
            self.commands.remind_now()

    def show_settings(self) -> None:
        self.settings_dialog.show()
        self.settings_dialog.raise_()
        self.settings_dialog.activateWindow()

    def update_remaining_display(self) -> None:
        remaining = format_short_duration(self.state.seconds_until_next())
        self.remaining_action.setText(f"Remaining: {remaining}")
        self.tray.setToolTip(f"Water Reminder – next in {remaining}")


# ===== Application bootstrap ===============================================


class ReminderApplication(QtWidgets.QApplication):
    """Wires the state, scheduler and commands to the window and tray icon."""

    def __init__(self, argv: List[str], state: ReminderState, store: SettingsStore,
                 show_preview: bool = True) -> None:
        super().__init__(argv)
        self.setApplicationName(APP_NAME)
        self.setQuitOnLastWindowClosed(False)

        self.state = state
        self.signals = ReminderSignals()
        self.window = ReminderWindow(state)
        self.commands = ReminderCommands(state, store, window=self.window,
                                         on_remind=self.signals.showReminder.emit)
        self.window.dismissed.connect(self.commands.hide)

        self.settings_dialog = SettingsDialog(self.commands)
        self.settings_dialog.accepted.connect(self.window.refresh_message)
        self.tray = TrayController(state, self.commands, self.settings_dialog, self)
        self.window.settingsRequested.connect(self.tray.show_settings)

        self.presenter = ReminderPresenter(self.commands, self.window.refresh_message, self)
        self.scheduler = ReminderScheduler(state, self.signals.showReminder.emit)
        connect_scheduler(self, self.signals, self.presenter, self.scheduler)

        if show_preview:
            QtCore.QTimer.singleShot(PREVIEW_DELAY_MS, self.commands.remind_now)
        self.scheduler.start()


# ===== CLI argument parsing ================================================


def parse_interval_argument(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a whole number of seconds: {text!r}") from None
    try:
        return validate_interval(value)
    except InvalidIntervalError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tray reminder to drink water at a regular interval.")
    parser.add_argument("--interval", type=parse_interval_argument,
                        help="Reminder interval in seconds (default: 3600). Saved for later runs.")
    parser.add_argument("--no-preview", action="store_true", help="Skip showing the reminder once on launch.")
    parser.add_argument("--settings-file", type=Path, help="Read and write the interval at this path.")
    return parser


def apply_cli_overrides(state: ReminderState, store: SettingsStore, args: argparse.Namespace) -> None:
    if args.interval is None:
        return
    try:
        ReminderCommands(state, store).set_interval(args.interval)
    except SettingsWriteError as exc:
        print(f"[WaterReminder] {exc}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    store = SettingsStore(args.settings_file)
    state = ReminderState(load_initial_interval(store))
    apply_cli_overrides(state, store, args)

    app = ReminderApplication(sys.argv[:1], state, store, show_preview=not args.no_preview)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
