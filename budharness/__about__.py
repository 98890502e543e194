__version__ = "budharness@0.1.0"
