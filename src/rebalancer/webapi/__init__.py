"""HTTP API for triggering rebalances and inspecting the portfolio."""
