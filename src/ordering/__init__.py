"""Ordering bounded context: orders, their line items, and the transaction
coordinator that places them."""
