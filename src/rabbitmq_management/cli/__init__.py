"""Command line interface for the RabbitMQ management API."""
