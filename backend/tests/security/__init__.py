"""Security tests for the registrar intake API

This module contains security-focused tests including:
- API key enforcement on protected endpoints
- Expired and inactive key rejection
- Key confidentiality in responses and logs
"""
