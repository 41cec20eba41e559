__all__ = ["MainWindow", "StripChart", "SpectrumView"]

from .main_window import MainWindow
from .strip_chart import StripChart
from .spectrum_view import SpectrumView
