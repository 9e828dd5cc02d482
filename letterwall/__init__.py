"""Letter wall - 26 LED message display simulator and driver"""

__version__ = "0.1.0"
