"""
Dynamic pricing.

Quotes token prices for a creator's messages, calls, meetings and events
from market demand, time of day, purchasing power and buyer discounts.
"""
