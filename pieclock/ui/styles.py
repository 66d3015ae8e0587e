from __future__ import annotations

from PyQt6.QtWidgets import QApplication


BACKGROUND = "#f2efe9"
CARD = "#fbf6f0"
INK = "#2f2a26"
MUTED = "#8a7f75"
ACCENT = "#ff8000"
ACCENT_DARK = "#e06f00"
ALERT = "#d9142b"

THEME_QSS = f"""
QMainWindow, QScrollArea, QScrollArea > QWidget > QWidget {{
    background: {BACKGROUND};
    border: none;
}}

QWidget {{
    color: {INK};
    font-size: 13px;
}}

QFrame#Card {{
    background: {CARD};
    border: 1px solid #e6dcd2;
    border-radius: 14px;
    min-width: 260px;
    max-width: 340px;
}}

QFrame#Card QLabel, QFrame#Card QCheckBox {{
    background: transparent;
}}

QLabel#Heading {{
    font-size: 18px;
    font-weight: 700;
}}

QLabel#TimerLabel {{
    font-size: 30px;
    font-weight: 700;
    font-family: "Menlo", "Consolas", monospace;
}}

QLabel#MutedText {{
    color: {MUTED};
}}

QPushButton {{
    background: #efe6dd;
    border: none;
    border-radius: 8px;
    padding: 5px 10px;
}}

QPushButton:hover {{
    background: #e7dbcf;
}}

QPushButton:disabled {{
    color: #b8ada3;
}}

QPushButton#PrimaryButton {{
    background: {ACCENT};
    color: white;
    font-weight: 600;
    padding: 6px 16px;
}}

QPushButton#PrimaryButton:hover {{
    background: {ACCENT_DARK};
}}

QPushButton#SecondaryButton {{
    color: {ALERT};
}}

QToolButton {{
    background: transparent;
    border: none;
    color: {MUTED};
    padding: 2px 4px;
}}

QToolButton:hover {{
    color: {INK};
}}

QLineEdit, QSpinBox, QComboBox, QTimeEdit {{
    background: white;
    border: 1px solid #e6dcd2;
    border-radius: 6px;
    padding: 3px 6px;
}}

QLineEdit:focus, QSpinBox:focus, QTimeEdit:focus {{
    border-color: {ACCENT};
}}
"""


def apply_theme(app: QApplication) -> None:
    app.setStyleSheet(THEME_QSS)
