"""
Core - shared infrastructure for the HomeFix marketplace.

- Base models with timestamps
- API exception handling
- Role permissions and base viewsets
- Geocoding helpers (Haversine distance ranking)
"""
