"""Services — imperative shell around the pure core.

Invariants:
    - Services own write sequencing; core owns planning and validation
    - Services never build HTTP responses (routes do)

Design Decisions:
    - One service class per resource, stores injected (ADR: testable without FastAPI)
"""
