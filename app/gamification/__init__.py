"""
Creator gamification.

Daily and weekly missions sized by creator level, anti-exploitation checks
on reported activity, completion streaks and level-point (LP) rewards.
LP is a separate points balance; it never moves tokens.
"""
