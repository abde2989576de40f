"""
Core domain for the tunnel supervisor.

Holds the forwarding and tunnel models, the exception hierarchy and the
lifecycle interfaces shared by the application layer.
"""
