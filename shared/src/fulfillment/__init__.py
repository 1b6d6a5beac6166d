"""Order fulfillment for the cocktail storefront.

Reconciles Stripe payment events with orders, line items and inventory.
"""
