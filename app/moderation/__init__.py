"""
Abuse firewall.

Inspects comments left on creator content, opens abuse cases for harmful
ones and applies graduated mitigation: stealth hiding, warnings, content
removal, comment freezes and bans.
"""
