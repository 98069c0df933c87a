"""
Evaluation suite -- ledger, planner, chain, orchestrator, invoker, API.

Run evals: pytest evals/ -v
"""
