"""
Environment-based configuration.
"""
