"""
Pipeline Monitor - Main Package

Monitoring and alerting aggregation for the content pipeline: health
scoring, threshold alerts, time-bucketed trends and a dashboard API.
"""

__version__ = "1.0.0"
__description__ = "Monitoring and alerting service for the content pipeline"
