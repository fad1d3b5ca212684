"""Player ledger: creation, balances, prestige and the starter kit."""
