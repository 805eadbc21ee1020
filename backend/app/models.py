from pydantic import BaseModel


class HelloResponse(BaseModel):
    msg: str


class HealthResponse(BaseModel):
    status: str


class LimitsResponse(BaseModel):
    max_concurrent_jobs: int
    active_jobs: int
    tool_timeout_seconds: float
