"""
Common schemas used across the API
"""
from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = "ok"
    timestamp: str
    version: str
    database: str = "connected"
