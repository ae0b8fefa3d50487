"""Wallpaper rendering package.

This package contains the pipeline behind the API endpoint: sniffing the
uploaded background, computing calendar progress, laying out the widget,
serializing it to SVG and rasterizing it to PNG. See individual modules
for details.
"""
