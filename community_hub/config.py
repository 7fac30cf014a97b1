from pydantic import BaseModel
from pydantic_settings import BaseSettings
from typing import List, Optional
from decimal import Decimal


class TierConfig(BaseModel):
    """One membership tier row as supplied by configuration"""
    name: str
    min_spend: Decimal
    max_spend: Optional[Decimal] = None  # None means unbounded (last tier only)
    point_value: Decimal
    discount_percent: Decimal = Decimal('0')


class ResourceConfig(BaseModel):
    """A bookable resource seeded into the capacity pool at startup"""
    resource_id: str
    service_type: str
    name: str
    total_capacity: int


DEFAULT_TIER_TABLE = [
    TierConfig(name="bronze", min_spend=Decimal('0'), max_spend=Decimal('2000000'),
               point_value=Decimal('1000'), discount_percent=Decimal('0')),
    TierConfig(name="silver", min_spend=Decimal('2000000'), max_spend=Decimal('5000000'),
               point_value=Decimal('1200'), discount_percent=Decimal('2')),
    TierConfig(name="gold", min_spend=Decimal('5000000'), max_spend=Decimal('10000000'),
               point_value=Decimal('1400'), discount_percent=Decimal('5')),
    TierConfig(name="platinum", min_spend=Decimal('10000000'), max_spend=None,
               point_value=Decimal('1500'), discount_percent=Decimal('10')),
]

DEFAULT_RESOURCES = [
    ResourceConfig(resource_id="restaurant-main", service_type="order",
                   name="Main Restaurant Kitchen", total_capacity=40),
    ResourceConfig(resource_id="football-field", service_type="reservation",
                   name="Football Field", total_capacity=1),
    ResourceConfig(resource_id="meeting-room-a", service_type="reservation",
                   name="Meeting Room A", total_capacity=1),
    ResourceConfig(resource_id="parking-b1", service_type="parking",
                   name="Basement B1 Parking", total_capacity=120),
    ResourceConfig(resource_id="shuttle-route-1", service_type="bus",
                   name="Shuttle Route 1 - Morning", total_capacity=29),
    ResourceConfig(resource_id="community-hall", service_type="event",
                   name="Community Hall Events", total_capacity=100),
]


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./community_hub.db"
    DB_ECHO: bool = False

    # Application
    PROJECT_NAME: str = "Community Services Hub"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]  # React dev servers

    # Loyalty
    SPEND_PER_POINT: int = 20000
    TIER_TABLE: List[TierConfig] = DEFAULT_TIER_TABLE

    # Capacity
    RESOURCES: List[ResourceConfig] = DEFAULT_RESOURCES

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
