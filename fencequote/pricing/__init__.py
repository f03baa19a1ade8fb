"""
Quote generation & pricing engine.

Pure Python math over Decimal. No database, no HTTP.
Given a hydrated Job and PricingConfig, produce a consolidated bill of
materials, a cost breakdown, and an immutable version snapshot per quote.
"""
