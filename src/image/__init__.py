"""
Image helpers: geometry, format conversion and overlay rendering.
"""
