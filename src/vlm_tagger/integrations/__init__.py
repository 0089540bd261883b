"""
Integrations with remote services
"""

from .batch_api import RemoteBatchSubmitter

__all__ = ["RemoteBatchSubmitter"]
