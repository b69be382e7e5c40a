"""
HTTP API for the part template locator
"""
