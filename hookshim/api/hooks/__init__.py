"""Inbound webhook resources: the relay endpoint and the echo tester."""
