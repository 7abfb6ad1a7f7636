"""
API views, grouped by area.
"""
