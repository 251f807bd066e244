"""Web UI and REST wrapper around a single AWS SQS queue"""

__version__ = "0.3.0"
