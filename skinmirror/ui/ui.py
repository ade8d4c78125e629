from typing import Dict, Optional, Tuple

import numpy as np
from PySide6.QtCore import Qt, QDateTime, QLocale, QRect, QTimer
from PySide6.QtGui import QColor, QImage, QPainter, QPaintEvent
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QFrame, QSizePolicy, QStatusBar
)

from skinmirror.config import DEFAULT_SHADES
from skinmirror.core.session import Mode, MODE_INSTRUCTIONS, MODE_LABELS
from skinmirror.effects.analysis import AnalysisResult

PANEL_STYLE = "QFrame { background: #FFFFFF; border: 1px solid #BDC3C7; border-radius: 16px; }"
TITLE_STYLE = "border: none; font-size: 13px; font-weight: bold; color: #2C3E50; letter-spacing: 1px;"
VALUE_STYLE = "border: none; font-size: 16px; font-weight: 800; color: #2C3E50;"
TEXT_STYLE = "border: none; font-size: 13px; color: #34495E;"


def frame_to_qimage(frame: np.ndarray) -> QImage:
    """RGBA/RGB numpy-кадр -> QImage (копия, кадр можно дальше менять)."""
    h, w, ch = frame.shape
    fmt = QImage.Format_RGBA8888 if ch == 4 else QImage.Format_RGB888
    data = np.ascontiguousarray(frame)
    return QImage(data.data, w, h, ch * w, fmt).copy()


# --- ВИДЖЕТ ВИДЕО ---
class VideoWidget(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self._image: Optional[QImage] = None
        self._message = "Waiting for camera..."
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(480, 270)

    def set_frame(self, image: QImage):
        self._image = image
        self.update()

    def set_message(self, text: str):
        self._message = text
        self.update()

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#1E272E"))

        if self._image is None:
            painter.setPen(QColor("#ECF0F1"))
            painter.drawText(self.rect(), Qt.AlignCenter, self._message)
            return

        # Вписываем кадр с сохранением пропорций
        scaled = self._image.size().scaled(self.size(), Qt.KeepAspectRatio)
        x = (self.width() - scaled.width()) // 2
        y = (self.height() - scaled.height()) // 2
        painter.setRenderHint(QPainter.SmoothPixmapTransform)
        painter.drawImage(QRect(x, y, scaled.width(), scaled.height()), self._image)


class ModeHintWidget(QLabel):
    COLORS = {
        Mode.HOME: "#2C3E50",
        Mode.ANALYSIS: "#2980B9",
        Mode.MAKEUP: "#C0392B",
        Mode.PATCH: "#27AE60",
    }

    def __init__(self):
        super().__init__(MODE_LABELS[Mode.HOME])
        self.setAlignment(Qt.AlignCenter)
        self.setFixedHeight(40)
        self.update_mode(Mode.HOME)

    def update_mode(self, mode: Mode):
        self.setText(MODE_LABELS[mode])
        self.setStyleSheet(
            f"background: {self.COLORS[mode]}; color: white; padding: 8px 20px; "
            "border-radius: 10px; font-weight: bold; font-size: 16px;"
        )


# --- MAIN WINDOW ---
class MainWindow(QMainWindow):
    def __init__(self, initial_shade: Tuple[int, int, int] = DEFAULT_SHADES[0]):
        super().__init__()
        self._initial_shade = initial_shade
        self._panels: Dict[Mode, QFrame] = {}
        self._analysis_values: Dict[str, QLabel] = {}
        self._init_ui()
        self.set_mode(Mode.HOME)

        # Часы на главном экране
        self._clock_timer = QTimer(self)
        self._clock_timer.timeout.connect(self._tick_clock)
        self._clock_timer.start(30000)
        self._tick_clock()

    def _init_ui(self):
        self.setWindowTitle("Skin Mirror")
        self.resize(1200, 720)
        self.setStyleSheet("QMainWindow { background-color: #E9EEF3; }")

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(16, 16, 16, 16)
        main_layout.setSpacing(12)

        self._create_top_bar(main_layout)

        mid_layout = QHBoxLayout()
        mid_layout.setSpacing(12)
        self.video_widget = VideoWidget()
        mid_layout.addWidget(self.video_widget, stretch=1)
        self._create_side_panels(mid_layout)
        main_layout.addLayout(mid_layout, stretch=1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

    def _create_top_bar(self, layout):
        frame = QFrame()
        frame.setFixedHeight(72)
        frame.setStyleSheet("QFrame { background: #2C3E50; border-radius: 16px; }")
        l = QHBoxLayout(frame)
        l.setContentsMargins(24, 12, 24, 12)

        self.mode_hint = ModeHintWidget()
        self.mode_hint.setFixedWidth(220)
        l.addWidget(self.mode_hint)

        self.instructions_label = QLabel()
        self.instructions_label.setWordWrap(True)
        self.instructions_label.setStyleSheet("color: #ECF0F1; font-size: 14px; margin-left: 20px;")
        l.addWidget(self.instructions_label, stretch=1)

        layout.addWidget(frame)

    def _create_side_panels(self, layout):
        column = QVBoxLayout()
        column.setSpacing(12)

        self._panels[Mode.HOME] = self._create_home_panel()
        self._panels[Mode.ANALYSIS] = self._create_analysis_panel()
        self._panels[Mode.MAKEUP] = self._create_makeup_panel()
        self._panels[Mode.PATCH] = self._create_patch_panel()

        for panel in self._panels.values():
            panel.setFixedWidth(300)
            column.addWidget(panel)
        column.addStretch()
        layout.addLayout(column)

    def _panel(self, title: str) -> Tuple[QFrame, QVBoxLayout]:
        frame = QFrame()
        frame.setStyleSheet(PANEL_STYLE)
        l = QVBoxLayout(frame)
        l.setContentsMargins(20, 16, 20, 16)
        l.setSpacing(8)
        label = QLabel(title)
        label.setStyleSheet(TITLE_STYLE)
        l.addWidget(label)
        return frame, l

    def _create_home_panel(self) -> QFrame:
        frame, l = self._panel("HOME")

        self.clock_label = QLabel()
        self.clock_label.setStyleSheet("border: none; font-size: 42px; font-weight: 800; color: #2C3E50;")
        self.date_label = QLabel()
        self.date_label.setStyleSheet(TEXT_STYLE)
        l.addWidget(self.clock_label)
        l.addWidget(self.date_label)

        for text in ("☝️  1 finger: Skin Analysis", "✌️  2 fingers: Makeup Overlay", "🤟  3 fingers: Skin Patch"):
            item = QLabel(text)
            item.setStyleSheet(TEXT_STYLE)
            l.addWidget(item)
        return frame

    def _create_analysis_panel(self) -> QFrame:
        frame, l = self._panel("SKIN ANALYSIS")
        for key, title in (("type", "Skin type"), ("tone", "Tone"), ("acne", "Acne"), ("tzone", "T-zone")):
            row = QHBoxLayout()
            name = QLabel(title)
            name.setStyleSheet(TEXT_STYLE)
            value = QLabel("-")
            value.setStyleSheet(VALUE_STYLE)
            value.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
            row.addWidget(name)
            row.addWidget(value, stretch=1)
            l.addLayout(row)
            self._analysis_values[key] = value

        self.recommendations_label = QLabel("Scanning...")
        self.recommendations_label.setWordWrap(True)
        self.recommendations_label.setStyleSheet(TEXT_STYLE)
        l.addWidget(self.recommendations_label)
        return frame

    def _create_makeup_panel(self) -> QFrame:
        frame, l = self._panel("MAKEUP")
        self.shade_swatch = QLabel()
        self.shade_swatch.setFixedSize(56, 56)
        l.addWidget(self.shade_swatch)
        self.makeup_state_label = QLabel()
        self.makeup_state_label.setStyleSheet(TEXT_STYLE)
        l.addWidget(self.makeup_state_label)
        self.update_makeup_state(self._initial_shade, False, False)
        return frame

    def _create_patch_panel(self) -> QFrame:
        frame, l = self._panel("SKIN PATCH")
        self.patch_state_label = QLabel()
        self.patch_state_label.setStyleSheet(VALUE_STYLE)
        l.addWidget(self.patch_state_label)
        self.update_patch_state("off")
        return frame

    # --- ОБНОВЛЕНИЕ ---
    def set_mode(self, mode: Mode):
        self.mode_hint.update_mode(mode)
        self.instructions_label.setText(MODE_INSTRUCTIONS[mode])
        for m, panel in self._panels.items():
            panel.setVisible(m == mode)

    def show_frame(self, frame: np.ndarray):
        self.video_widget.set_frame(frame_to_qimage(frame))

    def show_message(self, text: str):
        self.video_widget.set_message(text)
        self.status_bar.showMessage(text)

    def show_analysis(self, result: AnalysisResult):
        self._analysis_values["type"].setText(result.skin_type)
        self._analysis_values["tone"].setText(result.tone)
        self._analysis_values["acne"].setText(result.acne)
        self._analysis_values["tzone"].setText(result.tzone)
        self.recommendations_label.setText("\n".join(f"• {r}" for r in result.recommendations))

    def update_makeup_state(self, shade, lipstick_on: bool, blush_on: bool):
        r, g, b = shade
        self.shade_swatch.setStyleSheet(
            f"background-color: rgb({r}, {g}, {b}); border: 2px solid #FFFFFF; border-radius: 28px;"
        )
        self.makeup_state_label.setText(
            f"Lipstick: {'ON' if lipstick_on else 'OFF'}    Blush: {'ON' if blush_on else 'OFF'}"
        )

    def update_patch_state(self, state: str):
        self.patch_state_label.setText(f"Patch: {state.upper()}")

    def update_status(self, fps: float, tracking: bool):
        self.status_bar.showMessage(f"FPS: {fps:.1f}  |  Tracking: {'yes' if tracking else 'no'}")

    def _tick_clock(self):
        now = QDateTime.currentDateTime()
        self.clock_label.setText(now.toString("HH:mm"))
        self.date_label.setText(QLocale().toString(now.date(), "ddd, MMM d, yyyy"))
