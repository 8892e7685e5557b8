"""Payments bounded context: payment outcome providers and the transaction
record written for every successful charge."""
