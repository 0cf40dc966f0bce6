"""CompanyGrow points ledger and leaderboard engine."""
