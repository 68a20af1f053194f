"""
httpdummy: Dummy HTTP backend with diagnostic paths.

A harmless backend for exercising load balancers, reverse proxies, client
libraries and observability pipelines with controllable traffic shapes.
"""

__version__ = "0.1.0"
