"""
Discount estimator service.

Deployed separately from the booking service. It shares nothing with it but
the entitlement token secret: no database, no ledger imports.
"""
