"""
Webcam Overlay Application
Main entry point for the application
"""

import argparse
import tkinter as tk

from webcam_overlay.gui.main_window import OverlayAppGUI
from webcam_overlay.services.camera_manager import CameraManager
from webcam_overlay.services.compositing.compositor import FrameCompositor
from webcam_overlay.services.image_library import ImageLibrary
from webcam_overlay.services.logger import LogLevel, make_console_logger
from webcam_overlay.services.overlay_config import OverlayConfigStore
from webcam_overlay.services.render_loop import DEFAULT_INTERVAL_MS


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Show the webcam stream with an image overlay.")
    parser.add_argument("--camera", type=int, default=0, help="Camera device index")
    parser.add_argument("--images", type=str, default="images", help="Directory with overlay images")
    parser.add_argument("--interval", type=int, default=DEFAULT_INTERVAL_MS, help="Redraw interval in ms")
    parser.add_argument("--width", type=int, default=640, help="Capture width")
    parser.add_argument("--height", type=int, default=480, help="Capture height")
    parser.add_argument("--debug-events", action="store_true", help="Log event broker activity")
    parser.add_argument("--verbose", action="store_true", help="Show debug messages")
    return parser.parse_args(argv)


def main(argv=None):
    """Main application entry point"""
    args = parse_args(argv)

    logger = make_console_logger(LogLevel.DEBUG if args.verbose else LogLevel.INFO)

    root = tk.Tk()

    camera_manager = CameraManager(camera_id=args.camera, view_size=(args.width, args.height))
    config_store = OverlayConfigStore(logger=logger)
    image_library = ImageLibrary(args.images, logger=logger)

    app = OverlayAppGUI(root,
                        camera_manager=camera_manager,
                        compositor=FrameCompositor(),
                        config_store=config_store,
                        image_library=image_library,
                        interval_ms=args.interval,
                        logger=logger,
                        debug_events=args.debug_events)
    app.open_default_camera()

    root.protocol("WM_DELETE_WINDOW", app.on_closing)
    root.mainloop()


if __name__ == '__main__':
    main()
