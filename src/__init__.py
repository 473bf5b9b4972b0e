"""
Package marker for source code under `src`.
It groups the admin console modules and shared settings under a stable import path.
Most functionality lives in the sibling packages; this file intentionally stays lightweight.
"""
