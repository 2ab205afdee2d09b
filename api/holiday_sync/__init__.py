"""
Periodic import of public bank holidays as events.
"""
