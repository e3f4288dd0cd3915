"""
Core utilities for Drive Gateway: constants, paths, logging.
"""
