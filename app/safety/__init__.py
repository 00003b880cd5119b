"""
Safety scoring.

Per-user safety score across four behaviour dimensions, graduated
interventions when a score drops, and manipulation screening of messages
sent to creators.
"""
