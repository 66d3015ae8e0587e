from __future__ import annotations

import time

from PyQt6.QtCore import QTime, QTimer, Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSpinBox,
    QTimeEdit,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from pieclock import config
from pieclock.core.clockface import SCALES, cycle_scale
from pieclock.core.collection import TimerCollection
from pieclock.core.sound import ALARM_SOUNDS
from pieclock.core.timer import CountdownTimer, TimerState, format_duration, format_duration_words
from pieclock.ui.dial import DialWidget


CARD_WIDTH = 320


class TimerCard(QFrame):
    def __init__(self, collection: TimerCollection, timer: CountdownTimer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("Card")
        self.collection = collection
        self.timer = timer
        self._shown_recents: tuple[float, ...] | None = None
        self._build_ui()
        self._connect_signals()
        self.refresh(blink_on=True)

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)

        header = QHBoxLayout()
        self.label_edit = QLineEdit(self.timer.label)
        self.move_left_btn = QToolButton()
        self.move_left_btn.setText("◀")
        self.move_right_btn = QToolButton()
        self.move_right_btn.setText("▶")
        self.copy_btn = QToolButton()
        self.copy_btn.setText("⧉")
        self.copy_btn.setToolTip("Copy as Markdown")
        self.remove_btn = QToolButton()
        self.remove_btn.setText("✕")
        header.addWidget(self.label_edit, 1)
        header.addWidget(self.move_left_btn)
        header.addWidget(self.move_right_btn)
        header.addWidget(self.copy_btn)
        header.addWidget(self.remove_btn)
        layout.addLayout(header)

        self.dial = DialWidget()
        layout.addWidget(self.dial, 1)

        self.remaining_label = QLabel("00:00")
        self.remaining_label.setObjectName("TimerLabel")
        self.remaining_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.detail_label = QLabel("")
        self.detail_label.setObjectName("MutedText")
        self.detail_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.remaining_label)
        layout.addWidget(self.detail_label)

        self.setup_panel = QWidget()
        setup = QVBoxLayout(self.setup_panel)
        setup.setContentsMargins(0, 0, 0, 0)

        hms = QHBoxLayout()
        self.hours_spin = QSpinBox()
        self.hours_spin.setRange(0, 96)
        self.hours_spin.setSuffix(" h")
        self.minutes_spin = QSpinBox()
        self.minutes_spin.setRange(0, 59)
        self.minutes_spin.setSuffix(" m")
        self.seconds_spin = QSpinBox()
        self.seconds_spin.setRange(0, 59)
        self.seconds_spin.setSuffix(" s")
        hms.addWidget(self.hours_spin)
        hms.addWidget(self.minutes_spin)
        hms.addWidget(self.seconds_spin)
        setup.addLayout(hms)

        end_at = QHBoxLayout()
        self.end_at_check = QCheckBox("End at")
        self.end_at_edit = QTimeEdit()
        self.end_at_edit.setDisplayFormat("h:mm AP")
        end_at.addWidget(self.end_at_check)
        end_at.addWidget(self.end_at_edit, 1)
        setup.addLayout(end_at)

        presets = QHBoxLayout()
        self.preset_buttons: list[QPushButton] = []
        for minutes in config.PRESET_MINUTES:
            button = QPushButton(f"{minutes}")
            button.setToolTip(f"{minutes} min")
            self.preset_buttons.append(button)
            presets.addWidget(button)
        setup.addLayout(presets)

        self.recent_combo = QComboBox()
        setup.addWidget(self.recent_combo)

        options = QGridLayout()
        self.sound_combo = QComboBox()
        self.sound_combo.addItems(ALARM_SOUNDS)
        self.alarm_spin = QSpinBox()
        self.alarm_spin.setRange(config.MIN_ALARM_SECONDS, config.MAX_ALARM_SECONDS)
        self.alarm_spin.setSuffix(" s")
        self.loop_check = QCheckBox("Loop")
        self.auto_color_check = QCheckBox("Auto color")
        self.flash_check = QCheckBox("Flash warning")
        options.addWidget(self.sound_combo, 0, 0)
        options.addWidget(self.alarm_spin, 0, 1)
        options.addWidget(self.loop_check, 1, 0)
        options.addWidget(self.auto_color_check, 1, 1)
        options.addWidget(self.flash_check, 2, 0)
        setup.addLayout(options)
        layout.addWidget(self.setup_panel)

        controls = QHBoxLayout()
        self.scale_btn = QPushButton()
        self.auto_scale_check = QCheckBox("Auto")
        self.auto_scale_check.setToolTip("Zoom the face as time runs down")
        self.primary_btn = QPushButton("Start")
        self.primary_btn.setObjectName("PrimaryButton")
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.setObjectName("SecondaryButton")
        self.silence_btn = QPushButton("Silence")
        controls.addWidget(self.scale_btn)
        controls.addWidget(self.auto_scale_check)
        controls.addStretch()
        controls.addWidget(self.silence_btn)
        controls.addWidget(self.cancel_btn)
        controls.addWidget(self.primary_btn)
        layout.addLayout(controls)

    def _connect_signals(self) -> None:
        self.label_edit.editingFinished.connect(self._on_label_edited)
        self.move_left_btn.clicked.connect(lambda: self._move(-1))
        self.move_right_btn.clicked.connect(lambda: self._move(1))
        self.copy_btn.clicked.connect(self._copy_markdown)
        self.remove_btn.clicked.connect(self._remove)
        self.dial.duration_dragged.connect(self._on_dial_dragged)
        self.dial.drag_finished.connect(self._on_dial_released)
        for spin in (self.hours_spin, self.minutes_spin, self.seconds_spin):
            spin.valueChanged.connect(self._on_hms_changed)
        self.end_at_check.toggled.connect(self._on_end_at_toggled)
        self.end_at_edit.timeChanged.connect(self._on_end_at_changed)
        for minutes, button in zip(config.PRESET_MINUTES, self.preset_buttons):
            button.clicked.connect(lambda _checked=False, m=minutes: self._apply_preset(m))
        self.recent_combo.activated.connect(self._on_recent_chosen)
        self.sound_combo.currentTextChanged.connect(self._on_options_changed)
        self.alarm_spin.valueChanged.connect(self._on_options_changed)
        self.loop_check.toggled.connect(self._on_options_changed)
        self.auto_color_check.toggled.connect(self._on_options_changed)
        self.flash_check.toggled.connect(self._on_options_changed)
        self.scale_btn.clicked.connect(self._cycle_scale)
        self.auto_scale_check.toggled.connect(self._on_auto_scale_toggled)
        self.primary_btn.clicked.connect(self.toggle)
        self.cancel_btn.clicked.connect(self._cancel)
        self.silence_btn.clicked.connect(lambda: self.collection.silence(self.timer.id))

    # --- sync from model ---

    def refresh(self, blink_on: bool) -> None:
        timer = self.timer
        state = timer.state
        idle = state == TimerState.IDLE

        self.setup_panel.setVisible(idle)
        self.primary_btn.setText({
            TimerState.IDLE: "Start",
            TimerState.RUNNING: "Pause",
            TimerState.PAUSED: "Resume",
            TimerState.ALARMING: "Dismiss",
        }[state])
        self.primary_btn.setEnabled(not idle or timer.configured_duration > 0 or timer.use_end_at_mode)
        self.cancel_btn.setVisible(timer.is_active)
        self.silence_btn.setVisible(timer.is_alarm_ringing and state != TimerState.ALARMING)

        if idle:
            scale = timer.manual_scale
            self.dial.show_preview(timer.configured_duration, scale, timer.manual_color)
            self.remaining_label.setText(format_duration(timer.configured_duration))
            self.detail_label.setText(format_duration_words(timer.configured_duration))
            self._sync_setup_fields()
        else:
            display = timer.display()
            scale = display.scale
            self.dial.set_display(display, blink_on)
            self.remaining_label.setText(format_duration(display.remaining_seconds))
            if state == TimerState.ALARMING:
                self.detail_label.setText(f"{timer.default_name} ended")
            else:
                self.detail_label.setText(f"of {format_duration(timer.initial_duration)}")
        self.scale_btn.setText(f"{scale.label} face")
        self.auto_scale_check.blockSignals(True)
        self.auto_scale_check.setChecked(timer.auto_scale_enabled)
        self.auto_scale_check.blockSignals(False)

    def _sync_setup_fields(self) -> None:
        timer = self.timer
        h, m, s = timer.configured_hms
        widgets = (
            self.hours_spin,
            self.minutes_spin,
            self.seconds_spin,
            self.end_at_check,
            self.end_at_edit,
            self.sound_combo,
            self.alarm_spin,
            self.loop_check,
            self.auto_color_check,
            self.flash_check,
            self.recent_combo,
        )
        for widget in widgets:
            widget.blockSignals(True)
        self.hours_spin.setValue(min(h, self.hours_spin.maximum()))
        self.minutes_spin.setValue(m)
        self.seconds_spin.setValue(s)
        self.end_at_check.setChecked(timer.use_end_at_mode)
        hour24 = timer.end_at_hour % 12 + (12 if timer.end_at_is_pm else 0)
        self.end_at_edit.setTime(QTime(hour24, timer.end_at_minute))
        self.end_at_edit.setEnabled(timer.use_end_at_mode)
        self.sound_combo.setCurrentText(timer.sound_choice)
        self.alarm_spin.setValue(timer.alarm_play_duration)
        self.loop_check.setChecked(timer.looping)
        self.auto_color_check.setChecked(timer.auto_color_enabled)
        self.flash_check.setChecked(timer.flash_warning_enabled)
        recents = tuple(self.collection.recent_durations)
        if recents != self._shown_recents:
            self._shown_recents = recents
            self.recent_combo.clear()
            self.recent_combo.addItem("Recent…")
            for seconds in recents:
                self.recent_combo.addItem(format_duration_words(seconds), seconds)
        for widget in widgets:
            widget.blockSignals(False)

    # --- user actions ---

    def toggle(self) -> None:
        timer_id = self.timer.id
        state = self.timer.state
        if state == TimerState.IDLE:
            self.collection.start(timer_id)
        elif state == TimerState.RUNNING:
            self.collection.pause(timer_id)
        elif state == TimerState.PAUSED:
            self.collection.resume(timer_id)
        else:
            self.collection.dismiss(timer_id)

    def _cancel(self) -> None:
        answer = QMessageBox.question(
            self,
            "Cancel timer",
            "Stop this countdown?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if answer == QMessageBox.StandardButton.Yes:
            self.collection.cancel(self.timer.id)

    def _on_dial_dragged(self, seconds: float) -> None:
        if self.timer.state == TimerState.IDLE:
            self.timer.use_end_at_mode = False
            self.timer.set_configured_duration(seconds)
            self.collection.touch(self.timer.id, persist=False)
        else:
            self.collection.set_remaining(self.timer.id, seconds)

    def _on_dial_released(self) -> None:
        if self.timer.state != TimerState.IDLE:
            return
        if self.timer.configured_duration > 0:
            self.collection.set_remaining(self.timer.id, self.timer.configured_duration)
        else:
            self.collection.touch(self.timer.id)

    def _on_hms_changed(self) -> None:
        self.timer.set_configured_hms(self.hours_spin.value(), self.minutes_spin.value(), self.seconds_spin.value())
        self.collection.touch(self.timer.id)

    def _on_end_at_toggled(self, checked: bool) -> None:
        self.timer.use_end_at_mode = checked
        if checked:
            self.timer.apply_end_at()
        self.collection.touch(self.timer.id)

    def _on_end_at_changed(self, value: QTime) -> None:
        self.timer.end_at_hour = value.hour() % 12 or 12
        self.timer.end_at_minute = value.minute()
        self.timer.end_at_is_pm = value.hour() >= 12
        self.timer.apply_end_at()
        self.collection.touch(self.timer.id)

    def _apply_preset(self, minutes: int) -> None:
        self.timer.apply_preset(minutes)
        self.collection.touch(self.timer.id)

    def _on_recent_chosen(self, index: int) -> None:
        seconds = self.recent_combo.itemData(index)
        if seconds is None:
            return
        self.timer.use_end_at_mode = False
        self.timer.set_configured_duration(seconds)
        self.collection.touch(self.timer.id)

    def _on_options_changed(self, *_args) -> None:
        self.timer.sound_choice = self.sound_combo.currentText()
        self.timer.alarm_play_duration = self.alarm_spin.value()
        self.timer.looping = self.loop_check.isChecked()
        self.timer.auto_color_enabled = self.auto_color_check.isChecked()
        self.timer.flash_warning_enabled = self.flash_check.isChecked()
        self.collection.touch(self.timer.id)

    def _on_label_edited(self) -> None:
        self.timer.label = self.label_edit.text().strip() or "Timer"
        self.collection.touch(self.timer.id)

    def _cycle_scale(self) -> None:
        timer = self.timer
        if timer.state == TimerState.IDLE:
            idx = SCALES.index(timer.manual_scale)
            timer.manual_scale = SCALES[(idx + 1) % len(SCALES)]
        else:
            current = timer.effective_scale
            timer.auto_scale_enabled = False
            timer.manual_scale = cycle_scale(current, timer.remaining)
        self.collection.touch(timer.id)

    def _on_auto_scale_toggled(self, checked: bool) -> None:
        if not checked and self.timer.is_active:
            self.timer.manual_scale = self.timer.effective_scale
        self.timer.auto_scale_enabled = checked
        self.collection.touch(self.timer.id)

    def _move(self, step: int) -> None:
        ids = self.collection.ids
        self.collection.reorder(self.timer.id, ids.index(self.timer.id) + step)

    def _copy_markdown(self) -> None:
        QApplication.clipboard().setText(self.timer.to_markdown())

    def _remove(self) -> None:
        if self.timer.is_active:
            answer = QMessageBox.question(
                self,
                "Remove timer",
                "This timer is still counting down. Remove it?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if answer != QMessageBox.StandardButton.Yes:
                return
        self.collection.remove(self.timer.id)
        self.collection.ensure_not_empty()


class MainWindow(QMainWindow):
    def __init__(self, collection: TimerCollection) -> None:
        super().__init__()
        self.setWindowTitle("Pie Clock")
        self.resize(1000, 640)

        self.collection = collection
        self.cards: dict[str, TimerCard] = {}
        self._layout_key: tuple[tuple[str, ...], int] = ((), 0)

        self._build_ui()
        self.collection.changed.connect(self._on_collection_changed)
        self._rebuild_cards()

        self.tick_timer = QTimer(self)
        self.tick_timer.setInterval(config.TICK_INTERVAL_MS)
        self.tick_timer.timeout.connect(self.collection.tick_all)
        self.tick_timer.start()

    def _build_ui(self) -> None:
        central = QWidget(self)
        self.setCentralWidget(central)
        root = QVBoxLayout(central)

        top_bar = QHBoxLayout()
        title = QLabel("Timers")
        title.setObjectName("Heading")
        self.add_btn = QPushButton("+ Add timer")
        self.add_btn.setObjectName("PrimaryButton")
        self.add_btn.clicked.connect(lambda: self.collection.add())
        top_bar.addWidget(title)
        top_bar.addStretch()
        top_bar.addWidget(self.add_btn)
        root.addLayout(top_bar)

        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        self.grid_host = QWidget()
        self.grid = QGridLayout(self.grid_host)
        self.scroll.setWidget(self.grid_host)
        root.addWidget(self.scroll, 1)

        space_action = QAction(self)
        space_action.setShortcut(QKeySequence(Qt.Key.Key_Space))
        space_action.triggered.connect(self._space_toggle)
        self.addAction(space_action)

    def _columns(self) -> int:
        return max(1, self.scroll.viewport().width() // CARD_WIDTH)

    def _rebuild_cards(self) -> None:
        ids = self.collection.ids
        for timer_id in list(self.cards):
            if timer_id not in ids:
                self.cards.pop(timer_id).deleteLater()
        while self.grid.count():
            self.grid.takeAt(0)

        columns = self._columns()
        for index, timer in enumerate(self.collection):
            card = self.cards.get(timer.id)
            if card is None:
                card = TimerCard(self.collection, timer, self.grid_host)
                self.cards[timer.id] = card
            self.grid.addWidget(card, index // columns, index % columns)
        self._layout_key = (tuple(ids), columns)

    def _on_collection_changed(self) -> None:
        if self._layout_key != (tuple(self.collection.ids), self._columns()):
            self._rebuild_cards()
        blink_on = int(time.monotonic() * 2) % 2 == 0
        for card in self.cards.values():
            card.refresh(blink_on)

    def _space_toggle(self) -> None:
        focused = QApplication.focusWidget()
        if isinstance(focused, (QLineEdit, QSpinBox)):
            return
        timers = self.collection.timers
        if timers:
            self.cards[timers[0].id].toggle()

    def resizeEvent(self, event) -> None:  # noqa: N802
        super().resizeEvent(event)
        if self._layout_key[1] != self._columns():
            self._rebuild_cards()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.tick_timer.stop()
        self.collection.save()
        event.accept()
