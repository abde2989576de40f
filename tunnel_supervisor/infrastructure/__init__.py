"""
Infrastructure layer: configuration loading and logging.
"""
