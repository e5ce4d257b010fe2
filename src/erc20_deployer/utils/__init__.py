"""
Utilities for the ERC-20 deployment pipeline.
"""

from erc20_deployer.utils.logging import configure_logging, get_logger

__all__ = [
    "get_logger",
    "configure_logging",
]
