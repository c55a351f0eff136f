"""
HTTP API for the pricing engine.
"""
