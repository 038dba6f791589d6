"""Domain layer for siteledger application.

Services live in their own modules (``siteledger.domain.payroll`` and so
on) and are imported from there; this package does not re-export them
because the services depend on ``siteledger.database.base``, which in turn
imports ``siteledger.domain.entities``.
"""
