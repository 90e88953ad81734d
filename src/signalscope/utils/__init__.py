"""Small helpers shared across signalscope."""
