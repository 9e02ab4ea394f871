"""
Domain layer for pagecache.
"""
