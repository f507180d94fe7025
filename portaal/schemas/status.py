from pydantic import BaseModel


class SetupStatus(BaseModel):
    demo_mode: bool
    database_configured: bool
    database_ready: bool
    storage_configured: bool
    realtime_backend: str
