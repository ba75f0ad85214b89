"""Terminal front end for running the agent locally."""
