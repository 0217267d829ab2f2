from typing import Optional, Union
from pydantic import BaseModel, Field, field_validator
from videonft.domain.models import SizeConstraint

PROD_API_ENDPOINT = "https://livepeer.com"

class ApiConfig(BaseModel):
    api_key: Optional[str] = None
    endpoint: str = PROD_API_ENDPOINT
    timeout_seconds: float = Field(default=60.0, gt=0)
    upload_timeout_seconds: float = Field(default=3600.0, gt=0)

    @field_validator('endpoint')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

class NormalizeConfig(BaseModel):
    skip: bool = False
    size_limit_bytes: int = Field(default=100_000_000, gt=0)  # OpenSea upload limit
    min_bitrate_bps: int = Field(default=100_000, gt=0)
    min_720p_bitrate_bps: int = Field(default=500_000, gt=0)

    @property
    def constraint(self) -> SizeConstraint:
        return SizeConstraint(size_limit_bytes=self.size_limit_bytes, min_bitrate_bps=self.min_bitrate_bps)

class PollingConfig(BaseModel):
    interval_seconds: float = Field(default=2.5, gt=0)
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

class MintConfig(BaseModel):
    enabled: bool = False
    chain_id: Optional[Union[int, str]] = None
    rpc_url: Optional[str] = None
    contract_address: Optional[str] = None
    to: Optional[str] = None
    private_key: Optional[str] = Field(default=None, repr=False)
    receipt_timeout_seconds: float = Field(default=300.0, gt=0)

class AppConfig(BaseModel):
    api: ApiConfig = Field(default_factory=ApiConfig)
    normalize: NormalizeConfig = Field(default_factory=NormalizeConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    mint: MintConfig = Field(default_factory=MintConfig)
    debug: bool = False
