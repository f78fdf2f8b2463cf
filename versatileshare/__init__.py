"""VersatileShare realtime notification service."""
