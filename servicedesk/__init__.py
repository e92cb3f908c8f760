"""
Service Desk API

Role-gated workflow backend for a service company: projects, complaints,
invoices and recurring maintenance contracts, with status derivation,
automatic invoicing and staff notifications.
"""

__version__ = "0.1.0"
