# This is patched during release
__version__ = "0.1.0"
