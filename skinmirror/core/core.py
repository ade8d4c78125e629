import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from skinmirror.config import AppConfig, ConfigError, load_config
from skinmirror.core.session import ModeController, TickContext
from skinmirror.ui.ui import MainWindow
from skinmirror.vision.camera_service import CameraService

logger = logging.getLogger(__name__)


class AppCore:
    def __init__(self, sys_argv, config: Optional[AppConfig] = None):
        self.app = QApplication(sys_argv)
        self.app.setStyle("Fusion")
        self.config = config or AppConfig()

        self.controller = ModeController(self.config)
        self.window = MainWindow(initial_shade=self.controller.makeup.current_shade)

        try:
            self.camera = CameraService(self.config.camera)
            self.camera_available = True
        except RuntimeError as e:
            logger.error("Camera error: %s. Running without video.", e)
            self.camera = None
            self.camera_available = False
            self.window.show_message(f"Camera unavailable: {e}")

        self.window.show()

        self.timer = QTimer()
        self.timer.timeout.connect(self._render_loop)
        if self.camera_available:
            self.timer.start(self.config.tick_interval_ms)

    def run(self) -> int:
        try:
            return self.app.exec()
        finally:
            if self.camera is not None:
                self.camera.release()

    def _render_loop(self):
        data = self.camera.get_frame_data()
        if data.frame is None:
            return

        # Сырой кадр -> оверлей режима (in-place в data.frame)
        ctx = TickContext(frame=data.frame, face_landmarks=data.face_landmarks, hands=data.hands)
        result = self.controller.tick(ctx)

        if result.mode_changed:
            self.window.set_mode(result.mode)
        if result.analysis is not None:
            self.window.show_analysis(result.analysis)

        makeup = self.controller.makeup
        self.window.update_makeup_state(makeup.current_shade, makeup.lipstick_on, makeup.blush_on)
        self.window.update_patch_state(self.controller.patch.state.value)

        self.window.show_frame(ctx.frame)
        self.window.update_status(data.fps, data.is_tracking)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gesture-driven skin analysis / makeup / patch mirror")
    parser.add_argument("--config", help="JSON file with config overrides")
    parser.add_argument("--camera", type=int, help="Camera index")
    parser.add_argument("--width", type=int, help="Capture width")
    parser.add_argument("--height", type=int, help="Capture height")
    parser.add_argument("--no-mirror", action="store_true", help="Do not mirror the video")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    config = load_config(args.config)
    camera = config.camera
    if args.camera is not None:
        camera = replace(camera, index=args.camera)
    if args.width is not None:
        camera = replace(camera, width=args.width)
    if args.height is not None:
        camera = replace(camera, height=args.height)
    if args.no_mirror:
        camera = replace(camera, mirror=False)
    return replace(config, camera=camera)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        config = build_config(args)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    core = AppCore(sys.argv[:1], config)
    return core.run()
