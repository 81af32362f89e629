"""
Rental Pricing Package

Tiered discount pricing for a peer-to-peer car rental marketplace.
Resolves rental charges using Daily Rate × Days → Best Tier → Final Price,
shared by the owner preview and the renter checkout.
"""

__version__ = "1.0.0"
