import logging
import sys
import os
import argparse
from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QTimer
from config.config_manager import ConfigManager
from core.preview_resolver import PreviewResolver
from gui.main_window import MainWindow
from plugins import exiftool_process

def setup_logging(log_level, log_dir="~/.flashcull"):
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    log_dir = os.path.expanduser(log_dir)
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "flashcull.log")
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path, mode="a"),
            logging.StreamHandler(sys.stdout)
        ]
    )

def main():
    parser = argparse.ArgumentParser(description="FlashCull: fast keyboard-driven photo culling.")
    parser.add_argument('directory', nargs='?', default=None, help='The directory to open.')
    parser.add_argument(
        '--log-level',
        default=None,
        help='Override the configured logging level (DEBUG, INFO, WARNING, ERROR).'
    )
    args = parser.parse_args()
    target_dir = args.directory

    try:
        config_manager = ConfigManager()
    except ValueError as e:
        print(f"flashcull: {e}", file=sys.stderr)
        return 1

    logging_level = args.log_level or config_manager.get("logging_level", "INFO")
    setup_logging(logging_level, config_manager.get("log_dir", "~/.flashcull"))

    logging.info("Starting FlashCull GUI")

    resolver = PreviewResolver.from_config(config_manager)

    app = QApplication(sys.argv)
    app.setApplicationName("FlashCull")

    if target_dir:
        target_dir = os.path.abspath(target_dir)
        if not os.path.isdir(target_dir):
            logging.error(f"Invalid directory provided: {target_dir}")
            return 1

    window = MainWindow(config_manager, resolver)

    app.aboutToQuit.connect(window.close_folder)
    app.aboutToQuit.connect(exiftool_process.shutdown_all)

    window.show()

    # Open the folder on the next event-loop tick so the window is painted first.
    if target_dir:
        QTimer.singleShot(0, lambda: window.open_folder(target_dir))

    exit_code = app.exec()

    logging.info(f"Application exiting with code {exit_code}.")
    return exit_code

if __name__ == "__main__":
    sys.exit(main())
