"""Domain layer for pathxpress application.

Services are imported from their modules directly, e.g.
``from pathxpress.domain.invoice import InvoiceService``; the database layer
imports ``pathxpress.domain.entities`` and this package must stay free of
service imports to keep that cycle-free.
"""
