# stateguard/loader/__init__.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from stateguard.loader.loader import LoaderArray

__all__ = ["LoaderArray"]
