"""Unit tests for Breezeline web route modules.

Each route module has a corresponding test file.

Structure:
    tests/unit/web/
    ├── test_routes_auth.py          # Login / logout / session check
    ├── test_routes_categories.py    # Portfolio categories
    ├── test_routes_estimation.py    # Quotes, price list, lead submission
    ├── test_routes_health.py        # Health check
    ├── test_routes_leads.py         # Admin lead listing
    └── test_routes_works.py         # Portfolio works and image uploads
"""
