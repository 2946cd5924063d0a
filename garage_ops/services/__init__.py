"""
Service layer for the garage data core.

This module contains:
- Date normalization
- Local snapshot cache
- Supabase store adapter
- In-memory working set
- The GarageDatabase sync and mutation service
"""
