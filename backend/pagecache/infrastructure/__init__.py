"""
Infrastructure layer: cache store backends.
"""
