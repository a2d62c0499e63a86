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

from dataclasses import dataclass, field
from typing import Any, Iterable

_KNOWN_DESCRIPTOR_FIELDS = {
    "title",
    "errorCode",
    "message",
    "family",
    "scope",
    "id",
}


@dataclass
class DataAPIErrorDescriptor:
    """
    A single error as reported by the API in the "errors" list of a response.

    Errors may accompany a partial success: for instance an insertMany
    command may write most of its documents and fail on a few of them.
    The DevOps API reports its errors with the same general shape, so this
    class describes those too.

    Attributes:
        title: the "title" field of the error, if any.
        error_code: the "errorCode" field (for DevOps errors, the "ID").
        message: the human-readable "message" field.
        family: the "family" field (e.g. "REQUEST", "SERVER").
        scope: the "scope" field.
        id: the "id" field, a unique identifier of this error instance.
        attributes: any further key-value pairs found in the error.
    """

    title: str | None = None
    error_code: str | None = None
    message: str | None = None
    family: str | None = None
    scope: str | None = None
    id: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, error_dict: dict[str, Any] | str) -> DataAPIErrorDescriptor:
        if isinstance(error_dict, str):
            return cls(message=error_dict)
        _error_code = error_dict.get("errorCode", error_dict.get("ID"))
        return cls(
            title=error_dict.get("title"),
            error_code=str(_error_code) if _error_code is not None else None,
            message=error_dict.get("message"),
            family=error_dict.get("family"),
            scope=error_dict.get("scope"),
            id=error_dict.get("id"),
            attributes={
                k: v
                for k, v in error_dict.items()
                if k not in _KNOWN_DESCRIPTOR_FIELDS and k != "ID"
            },
        )

    @classmethod
    def from_list(
        cls, error_dicts: Iterable[dict[str, Any] | str] | None
    ) -> list[DataAPIErrorDescriptor]:
        return [cls.from_dict(error_dict) for error_dict in error_dicts or []]

    def __str__(self) -> str:
        return self.summary()

    def summary(self) -> str:
        """
        A one-line description of the error, composed from whatever among
        title, message and error code is available.
        """

        text_part = ": ".join(pc for pc in (self.title, self.message) if pc)
        if self.error_code:
            return f"{text_part} ({self.error_code})" if text_part else self.error_code
        return text_part


@dataclass
class DataAPIWarningDescriptor(DataAPIErrorDescriptor):
    """
    A single warning as reported by the API in the "warnings" of a response.
    It has the same structure as an error descriptor.
    """

    pass


def summarize_error_descriptors(descriptors: list[DataAPIErrorDescriptor]) -> str:
    summaries = [descriptor.summary() for descriptor in descriptors]
    if not summaries:
        return ""
    if len(summaries) == 1:
        return summaries[0]
    joined = "; ".join(f"[{i + 1}] {summary}" for i, summary in enumerate(summaries))
    return f"[{len(summaries)} errors collected] {joined}"
