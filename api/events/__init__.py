"""
Calendar events: query dispatch, persistence and HTTP surface.
"""
