"""
Community Engine - categories, threads and transfer announcements.
"""

from furioza.engines.community.categories import CategoryService
from furioza.engines.community.threads import ThreadListing, ThreadService
from furioza.engines.community.transfers import (
    TransferService,
    parse_age,
    parse_transfer_type,
)

__all__ = [
    "CategoryService",
    "ThreadListing",
    "ThreadService",
    "TransferService",
    "parse_age",
    "parse_transfer_type",
]
