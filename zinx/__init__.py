"""Building blocks for message-oriented servers: packet codecs, sharded maps, routing, timers and heartbeats."""

__version__ = "0.1.0"