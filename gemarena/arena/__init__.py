"""Arena orchestration: planning, executing and aggregating seeded games."""
