"""
Application services: cache facade, page cache and HTTP negotiation.
"""
