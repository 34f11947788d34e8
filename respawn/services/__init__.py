"""
Domain services.

- users: user-profile lookups and flags
- friends: friend request lifecycle and per-friend settings
- cooldowns: the per-pair cooldown ledger
- notifications: trigger decisions and push dispatch
- history: trigger history
- auth: accounts and sessions
"""
