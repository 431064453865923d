"""Telemetry domain: decision audit logs and system events.

Structure:
    audit/          Decision audit logging (decisions.jsonl)
    models/         Pydantic models for log event types
    system/         System operational logs (stderr + system.jsonl)
"""

__all__: list[str] = []
