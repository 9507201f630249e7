"""
slotengine - appointment availability and schedule-exception engine.
"""

__version__ = "0.3.0"
