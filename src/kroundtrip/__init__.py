"""Produce/consume round-trip harness for Kafka with a schema registry."""

__version__ = "0.1.0"
