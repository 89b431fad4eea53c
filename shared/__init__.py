"""
Shared infrastructure: configuration, errors, structured logging and models.
"""
