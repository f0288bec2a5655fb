# stateguard/interfaces/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Optional, Sequence, Union

StateName = str
TransitionName = str
EventName = str
MachineName = str

# comma-separated string or a sequence of registry keys
ChainedIdentifiers = Union[str, Sequence[str]]

# Callback Types
GuardCallback = Callable[[Any, Optional[EventName]], bool]
ActionCallback = Callable[[Any, Optional[EventName]], None]
Factory = Callable[[Any], Any]
