# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from typing import Sequence

from astradb_dataapi import __version__
from astradb_dataapi.constants import CallerType


def detect_package_user_agent() -> CallerType:
    return (__name__.split(".")[0], __version__)


def _caller_to_string(caller: CallerType) -> str | None:
    caller_name, caller_version = caller
    if not caller_name:
        return None
    return f"{caller_name}/{caller_version}" if caller_version else caller_name


def compose_full_user_agent(callers: Sequence[CallerType]) -> str | None:
    """
    Build a User-Agent string out of a list of (name, version) identities,
    most external first. Identities without a name are skipped.
    """

    ua_pieces = [
        piece for piece in (_caller_to_string(caller) for caller in callers) if piece
    ]
    return " ".join(ua_pieces) if ua_pieces else None
