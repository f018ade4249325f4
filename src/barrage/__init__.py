__all__ = [
    "RequestBarrage",
    "run_campaigns",
    "TargetSpec",
    "RunConfig",
    "CampaignResult",
    "ConfigError",
    "render_report",
]


from .core import RequestBarrage, run_campaigns
from .errors import ConfigError
from .models import CampaignResult, RunConfig, TargetSpec
from .rendering import render_report
