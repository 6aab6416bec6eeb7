"""
Notebook Backend: API Routes Package
=====================================

Route Inventory:
    - analytics.py:  POST /api/analytics/track
                     GET  /api/analytics/summary
                     GET  /api/analytics/tags
                     GET  /api/analytics/stats
    - health.py:     GET  /health

Routes stay thin: parse the request, call a service, return its model.
"""
