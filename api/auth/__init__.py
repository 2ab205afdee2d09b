"""
Login, session tokens and the per-request auth gate.
"""
