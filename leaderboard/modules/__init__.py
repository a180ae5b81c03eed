"""
Domain modules. Each module owns one service and its pure helpers.
"""
