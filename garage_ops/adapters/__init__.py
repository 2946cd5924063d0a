"""
Adapters for external collaborators.

This module contains:
- WhatsApp deep-link builders and the job completion notifier
"""
