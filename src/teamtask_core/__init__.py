"""TeamTask Core - authorization and lifecycle gates for a multi-tenant task tracker.

Modules:
- permissions: capability checks (who may do what to which resource)
- state_machine: status/role transition matrices
- relationships: membership and ownership questions
- services: operations that run lookup -> capability -> transition -> write
"""

__version__ = "1.0.0"
