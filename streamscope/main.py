import argparse
import gc
import logging
import sys

import pyqtgraph as pg
from PySide6.QtWidgets import QApplication

from gui.main_window import MainWindow
from gui.qsettings_adapter import create_gui_settings_store


# Must be set before any plot widget exists.
pg.setConfigOptions(antialias=True)

# Tune garbage collection for real-time performance.
# Increase gen0 threshold to reduce frequency of small collections during streaming.
gc.set_threshold(1500, 15, 15)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="streamscope", description="Live multi-channel strip charts")
    parser.add_argument("--host", help="read the feed from a TCP text bridge instead of the simulator")
    parser.add_argument("--port", type=int, help="TCP port of the text bridge")
    parser.add_argument("--theme", choices=("light", "dark"))
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv[:1])
    app.setApplicationName("StreamScope")

    store = create_gui_settings_store()
    overrides = {}
    if args.host is not None:
        overrides["feed_host"] = args.host
    if args.port is not None:
        overrides["feed_port"] = args.port
    if args.theme is not None:
        overrides["theme"] = args.theme
    if overrides:
        store.update(**overrides)

    window = MainWindow(store)
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
