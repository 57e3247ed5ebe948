"""
Power data sender package for the Power Monitor-to-sheet pipeline.

Reads daily consumption from the local Power Monitor journal, normalizes it
into entries, and posts one batch per run to the sheet logging endpoint.

CHANGELOG:
- 2026-10-16: Repurpose for Power Monitor journal sending
- 2026-02-14: Initial creation (STORY-001)

TODO:
- None
"""
