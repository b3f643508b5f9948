"""tfscore - transition finance compliance scoring engine."""

__version__ = "0.1.0"
