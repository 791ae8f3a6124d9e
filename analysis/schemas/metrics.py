"""Pydantic schemas for snapshot payloads; aliases are the dashboard wire names"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class WirePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class FunctionMetrics(WirePayload):
    name: str
    avg_response_time_ms: float = Field(alias="avgResponseTimeMs")
    error_rate: float = Field(alias="errorRate", ge=0, le=1)
    total_calls: int = Field(alias="totalCalls", ge=0)
    p95_response_time_ms: float = Field(alias="p95ResponseTimeMs")
    errors: int = Field(ge=0)


class ApiMetricsPayload(WirePayload):
    functions: List[FunctionMetrics] = Field(default_factory=list)
    overall_avg_response_time: float = Field(alias="overallAvgResponseTime")
    overall_error_rate: float = Field(alias="overallErrorRate", ge=0, le=1)
    total_calls: int = Field(alias="totalCalls", ge=0)
    total_errors: int = Field(alias="totalErrors", ge=0)


class UserMetricsPayload(WirePayload):
    dau: int = Field(ge=0)
    wau: int = Field(ge=0)
    mau: int = Field(ge=0)
    d1_retention_rate: float = Field(alias="d1RetentionRate", ge=0, le=1)
    new_users: int = Field(alias="newUsers", ge=0)


class CountryCount(WirePayload):
    country_code: str = Field(alias="countryCode")
    count: int


class RegionCount(WirePayload):
    region: str
    count: int


class GeographicDistributionPayload(WirePayload):
    countries: List[CountryCount] = Field(default_factory=list)
    regions: List[RegionCount] = Field(default_factory=list)
    total_users_with_geo_data: int = Field(alias="totalUsersWithGeoData", ge=0)


class TopVideo(WirePayload):
    id: str
    score: int
    likes: int
    comments: int


class VideoWatchTime(WirePayload):
    video_id: str = Field(alias="videoId")
    avg_watch_time: float = Field(alias="avgWatchTime")
    total_views: int = Field(alias="totalViews")


class VideoMetricsPayload(WirePayload):
    daily_uploads: int = Field(alias="dailyUploads", ge=0)
    top_videos: List[TopVideo] = Field(alias="topVideos", default_factory=list)
    average_watch_time_seconds: float = Field(alias="averageWatchTimeSeconds")
    average_watch_time_per_video: List[VideoWatchTime] = Field(alias="averageWatchTimePerVideo", default_factory=list)
    completion_rate: float = Field(alias="completionRate", ge=0, le=1)
    total_watch_events: int = Field(alias="totalWatchEvents", ge=0)


class SystemHealthPayload(WirePayload):
    processing_success_rate: float = Field(alias="processingSuccessRate", ge=0, le=1)
    processing_errors: int = Field(alias="processingErrors", ge=0)
    processing_in_flight: int = Field(alias="processingInFlight", ge=0)
    videos_updated_last_hour: int = Field(alias="videosUpdatedLastHour", ge=0)
    storage_raw_files_count: Optional[int] = Field(alias="storageRawFilesCount", default=None)
