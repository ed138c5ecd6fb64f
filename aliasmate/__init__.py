"""aliasmate - manage, run and apply your shell aliases"""

__version__ = "1.0.0"
