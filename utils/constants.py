#!/usr/bin/env python3

# Advertised hub names we know how to drive
HUB_NAME_MARKERS = ["Move Hub", "Technic"]

# Placeholder values until the hub reports the real ones
DEFAULT_VERSION = "0.0.00.0000"
DEFAULT_ADDRESS = "00:00:00:00:00:00"
DEFAULT_BATTERY = 100
DEFAULT_RSSI = -60

APP_VERSION = "0.1.0"
