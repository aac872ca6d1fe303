"""Tixbook: train ticket booking API with stateless session tokens."""
