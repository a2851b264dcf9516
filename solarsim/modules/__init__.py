"""
Feature modules: installations, datasets, replay, telemetry.
"""
