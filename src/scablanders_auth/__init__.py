"""Wallet sign-in and session handling for the Scablanders game backend."""
