"""Fulfillment bounded context: seller-driven shipping of paid orders."""
