"""Release and merge pipeline.

- guard: trunk push protection
- version: version resolution and changelog check
- ci: CI status polling with cancellation
- preflight: local verification suite
- merge: landing a feature branch on trunk
- publisher: the tag/merge/publish state machine
"""
