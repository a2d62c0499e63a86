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

from enum import Enum, EnumMeta
from typing import TypeVar

T = TypeVar("T", bound="StrEnum")


class StrEnumMeta(EnumMeta):
    def _find_member_name(cls, value: str) -> str | None:
        """
        Locate the member matching a string, trying (in order) the member names
        and the member values, both case-insensitively.
        """
        u_value = value.upper()
        for member_name, member in cls._member_map_.items():
            if member_name.upper() == u_value:
                return member_name
        for member_name, member in cls._member_map_.items():
            if str(member.value).upper() == u_value:
                return member_name
        return None

    def __contains__(cls, value: object) -> bool:
        if isinstance(value, str):
            return cls._find_member_name(value) is not None
        return isinstance(value, cls)


class StrEnum(str, Enum, metaclass=StrEnumMeta):
    """
    A string-valued enum whose members can be obtained from any spelling
    of either their name or their value, regardless of case.
    """

    def __str__(self) -> str:
        return str(self.value)

    @classmethod
    def coerce(cls: type[T], value: str | T) -> T:
        """
        Normalize a string (or a member) into a member of this enum.

        Raises:
            ValueError: if the string does not correspond to any member.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member_name = cls._find_member_name(value)
            if member_name is not None:
                return cls[member_name]
        raise ValueError(
            f"Invalid value '{value}' for {cls.__name__}. "
            f"Allowed values are: {[member.value for member in cls]}"
        )

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]
