# deskillz/__init__.py

"""
Deskillz client SDK

Authenticated request pipeline (bearer tokens, single-flight refresh,
retry-once) and HMAC-SHA256 score signing for tournament submissions.
"""

from deskillz.client import DeskillzClient
from deskillz.config.settings import SdkSettings

__all__ = ["DeskillzClient", "SdkSettings"]
