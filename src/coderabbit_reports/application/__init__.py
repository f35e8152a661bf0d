"""
Application layer: storage port, report workflow and server-side actions.
"""
