"""Inventory -- stock items with entry/exit movements and a low-stock flag."""
