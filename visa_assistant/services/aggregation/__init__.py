"""Read-only aggregation of an application with its owner and documents."""

from visa_assistant.services.aggregation.aggregator import ApplicationDataAggregator

__all__ = ["ApplicationDataAggregator"]
