"""
Telemetry Module - record projection and Prometheus exposition.
"""
