"""
Car Overspeeding Detection Demo

Simulated real-time overspeed detection on a live camera feed. Detections
are synthetic; a real model can be plugged in as an ObservationSource.
"""

__version__ = "1.0.0"
