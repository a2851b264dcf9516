"""
Solar Simulator - replays solar farm datasets and exports them to Prometheus.
"""
__version__ = "1.0.0"
