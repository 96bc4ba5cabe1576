"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Uniform error envelope."""

    error: str
    detail: str


class ChangeModel(BaseModel):
    id: str
    timestamp: str
    eventType: str
    resourceType: str
    namespace: str
    name: str
    details: str
    isRead: bool


class StatsResponse(BaseModel):
    total: int
    unread: int
    loadedBeforeStart: int
    currentSession: int
    eventTypeCounts: dict[str, int]
    resourceTypeCounts: dict[str, int]
    startTime: str
    uptime: str


class MarkReadRequest(BaseModel):
    id: str = Field(min_length=1, max_length=64)


class MarkReadResponse(BaseModel):
    success: bool


class MarkAllReadResponse(BaseModel):
    success: bool = True
    count: int


class SaveNowResponse(BaseModel):
    success: bool
    error: str | None = None


class HealthResponse(BaseModel):
    status: str = "healthy"


class MonitoringStatus(BaseModel):
    active: bool
    totalChanges: int | None = None
    uptime: str | None = None
    error: str | None = None


class DebugResponse(BaseModel):
    status: str = "healthy"
    version: str
    monitoring: MonitoringStatus
