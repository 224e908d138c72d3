"""Entry point for the Double Pendulum Chaos application."""

import argparse
import logging
import sys

from PyQt6.QtWidgets import QApplication

from app_window import AppWindow


def main():
    parser = argparse.ArgumentParser(description="Interactive double pendulum")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args, qt_args = parser.parse_known_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    app = QApplication([sys.argv[0]] + qt_args)
    window = AppWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
