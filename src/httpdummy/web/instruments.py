# src/httpdummy/web/instruments.py
"""Connection instruments shared by the middleware and handlers.

Registered in the process-wide registry on first import.
"""

from httpdummy import metrics

# Slow requests currently streaming
inflight_requests = metrics.register("conn.inflight", metrics.RelativeGauge())

# Slow requests abandoned because the client went away
failed_requests = metrics.register("conn.err", metrics.Counter())

# Accepted requests per second, averaged over 10 seconds
request_rate = metrics.register("conn.rate", metrics.EWMARate(window=10.0))
