"""Request observability: classification, Prometheus metrics, tracing and structured logs.

Every inbound request is timed, wrapped in a trace span and, unless it is a
scrape of the metrics endpoint itself, reduced to a low-cardinality
observation that feeds the metrics exporter.
"""
