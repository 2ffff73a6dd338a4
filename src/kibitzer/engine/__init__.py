"""Move sources: the Gemini reasoning client and the UCI engine bridge."""
