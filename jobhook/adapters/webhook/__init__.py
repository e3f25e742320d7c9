"""Webhook receiver adapters.

Provides HTTP endpoints for the partner system and operators:
- Receive signed job status callbacks
- Query per-job and aggregate callback history
- Run a self-signed smoke-test callback
"""
