"""
Supporter rankings.

Lifetime spend per (creator, supporter) pair, top-supporter badges and
activity segments.
"""
