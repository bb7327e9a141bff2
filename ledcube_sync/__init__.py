"""
LED Cube animation sync.

Host-side driver that probes an LED cube over a serial link and downloads or
uploads its complete animation set using the cube's lock-step ACK protocol.
"""

__version__ = "1.0.0"
