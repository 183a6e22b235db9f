"""
nokia-gfx Command-Line Interface
================================

This package provides command-line tools for the nokia-gfx toolchain:

- **xbm2nokia**: Asset converter (images -> C source for the display driver)
- **nokiaplay**: Animation player (serial bridge or simulated display)

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["xbm2nokia", "nokiaplay"]
