"""Shared unit constants.

All distances are handled in miles and all speeds in mph inside the engine;
these values convert metric inputs at the boundary.
"""

# Distance of one statute mile in meters
MILE_M = 1609.34

SECONDS_PER_HOUR = 3600

# 1 m/s expressed in mph
MPS_TO_MPH = SECONDS_PER_HOUR / MILE_M

# Number of recent runs shown on the dashboard and stats screens
RECENT_RUNS_LIMIT = 10
RECENT_ACHIEVEMENTS_LIMIT = 5

API_VERSION = "1.0.0"
