"""
HTTP layer for the video maker service.
"""
