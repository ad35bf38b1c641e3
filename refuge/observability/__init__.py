"""
Observability for refuge: logging, metrics and the HTTP application.
"""
