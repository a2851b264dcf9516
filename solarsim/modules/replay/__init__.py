"""
Replay Module - cyclic cursor over each installation's dataset.

Stopped --start()--> Playing --stop()--> Stopped
"""
