from __future__ import annotations

import re

import pyqtgraph as pg
from PySide6 import QtGui, QtWidgets

from shared.models import AppearanceProfile

_CSS_RGB = re.compile(
    r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([0-9.]+)\s*)?\)", re.IGNORECASE
)


def to_qcolor(color: str) -> QtGui.QColor:
    """Convert a CSS color (``#rrggbb``, ``rgb(...)``, ``rgba(...)``, names) to QColor."""
    match = _CSS_RGB.fullmatch(color.strip())
    if match:
        r, g, b, a = match.groups()
        alpha = 255 if a is None else int(round(max(0.0, min(1.0, float(a))) * 255))
        return QtGui.QColor(int(r), int(g), int(b), alpha)
    qcolor = QtGui.QColor(color)
    if not qcolor.isValid():
        raise ValueError(f"unsupported color {color!r}")
    return qcolor


def _css(color: QtGui.QColor) -> str:
    return f"rgb({color.red()},{color.green()},{color.blue()})"


class ThemeManager:
    """Centralizes application-wide styling, palettes, and PyQtGraph configurations."""

    @staticmethod
    def apply_theme(widget: QtWidgets.QWidget, profile: AppearanceProfile) -> None:
        """Apply the palette and stylesheet derived from `profile` to the given widget."""
        background = to_qcolor(profile.background_color)
        text = to_qcolor(profile.text_color)
        grid = to_qcolor(profile.grid_color)

        # 1. Apply Palette
        palette = widget.palette()
        palette.setColor(QtGui.QPalette.Window, background)
        palette.setColor(QtGui.QPalette.WindowText, text)
        palette.setColor(QtGui.QPalette.Base, background)
        palette.setColor(QtGui.QPalette.AlternateBase, grid)
        palette.setColor(QtGui.QPalette.Text, text)
        palette.setColor(QtGui.QPalette.Button, background)
        palette.setColor(QtGui.QPalette.ButtonText, text)
        palette.setColor(QtGui.QPalette.Highlight, QtGui.QColor(30, 144, 255))
        palette.setColor(QtGui.QPalette.HighlightedText, QtGui.QColor(255, 255, 255))
        widget.setPalette(palette)

        # 2. Apply Application Stylesheet
        widget.setStyleSheet(ThemeManager.get_stylesheet(profile))

    @staticmethod
    def style_plot(plot: pg.PlotWidget, profile: AppearanceProfile) -> None:
        """Restyle background, axes and grid of a pyqtgraph plot in place."""
        plot.setBackground(to_qcolor(profile.background_color))
        plot_item = plot.getPlotItem()
        grid_pen = pg.mkPen(to_qcolor(profile.grid_color), width=1)
        text_pen = pg.mkPen(to_qcolor(profile.text_color))
        for name in ("left", "bottom"):
            axis = plot_item.getAxis(name)
            axis.setPen(grid_pen)
            axis.setTextPen(text_pen)
        plot_item.showGrid(x=True, y=True, alpha=0.6)

    @staticmethod
    def get_stylesheet(profile: AppearanceProfile) -> str:
        """Return the application stylesheet for `profile`."""
        background = _css(to_qcolor(profile.background_color))
        text = _css(to_qcolor(profile.text_color))
        grid = _css(to_qcolor(profile.grid_color))
        return f"""
            QMainWindow {{ background-color: {background}; }}
            QWidget {{ color: {text}; }}
            QFrame#channelCard {{
                background-color: {background};
                border: 1px solid {grid};
                border-radius: 12px;
            }}
            QLabel {{ color: {text}; }}
            QPushButton {{
                background-color: {background};
                color: {text};
                border: 1px solid {text};
                border-radius: 11px;
                padding: 2px;
            }}
            QPushButton:hover {{ background-color: rgb(220,38,38); }}
            QComboBox {{
                color: {text};
                background-color: {background};
                border: 1px solid {grid};
                padding: 2px 4px;
            }}
            QComboBox QAbstractItemView {{
                color: {text};
                background-color: {background};
                selection-background-color: rgb(30,144,255);
                selection-color: rgb(255,255,255);
            }}
            QStatusBar {{ background-color: {background}; color: {text}; }}
        """


__all__ = ["ThemeManager", "to_qcolor"]
