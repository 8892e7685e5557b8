"""Inventory bounded context: product stock and the inventory ledger.

Product rows are written by the catalogue service. The order engine only
reads them and decrements stock through the ledger under a row lock.
"""
