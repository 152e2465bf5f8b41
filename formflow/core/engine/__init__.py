"""Core step-resolution utilities.

Responsibilities:
  - Provide the resolver and its debug hook for deterministic step transitions.
  - Must not read or write answer storage; consumes AnswerState snapshots.
"""
