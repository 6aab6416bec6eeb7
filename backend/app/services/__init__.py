# Services package init
"""
Service Inventory:
    - EventIngestionService: validate, normalize and record analytics events
    - AnalyticsService:      scoped/windowed reads for the summary endpoints
    - aggregation:           pure folds used by AnalyticsService
"""
