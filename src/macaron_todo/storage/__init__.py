"""Durable key-value persistence and the JSON codec for persisted collections."""
