"""
unsurf/data_models/gallery.py

Records kept by the optional cache (gallery) and index (directory)
collaborators.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from unsurf.data_models.ids import utc_now


class GalleryEntry(BaseModel):
    """A cached discovery result for one domain."""
    id: str
    domain: str
    url: str
    task: str
    endpoint_count: int
    endpoints_summary: str = Field(description='Comma-separated "METHOD pattern" list')
    spec_key: str = Field(description="Blob key of the stored OpenAPI document")
    contributor: str = Field(default="anonymous")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1)


class Fingerprint(BaseModel):
    """Lightweight summary of a domain's discovered capabilities."""
    id: str
    domain: str
    url: str
    endpoint_count: int
    methods: dict[str, int] = Field(default_factory=dict, description="Endpoint count per HTTP method")
    endpoints: list[str] = Field(default_factory=list, description='"METHOD pattern" per endpoint')
    spec_key: str
    contributor: str = Field(default="anonymous")
    last_scouted: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1)
