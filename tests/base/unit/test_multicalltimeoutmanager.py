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

import time

import pytest

from astradb_dataapi.exceptions import (
    DataAPITimeoutException,
    MultiCallTimeoutManager,
)


class TestTimeouts:
    @pytest.mark.describe("test MultiCallTimeoutManager")
    def test_multicalltimeoutmanager(self) -> None:
        mgr_n = MultiCallTimeoutManager(overall_timeout_ms=None)
        assert mgr_n.remaining_timeout().request_ms is None
        time.sleep(0.5)
        assert mgr_n.remaining_timeout().request_ms is None

        mgr_1 = MultiCallTimeoutManager(overall_timeout_ms=1000, timeout_label="lbl")
        crt_1 = mgr_1.remaining_timeout().request_ms
        assert crt_1 is not None
        time.sleep(0.6)
        crt_2 = mgr_1.remaining_timeout().request_ms
        assert crt_2 is not None
        assert crt_2 < crt_1
        time.sleep(0.6)
        with pytest.raises(DataAPITimeoutException) as exc:
            mgr_1.remaining_timeout()
        assert exc.value.timeout_type == "generic"
        assert "lbl = 1000 ms" in exc.value.text

    @pytest.mark.describe("test MultiCallTimeoutManager with a per-request cap")
    def test_multicalltimeoutmanager_capped(self) -> None:
        mgr_n = MultiCallTimeoutManager(overall_timeout_ms=0, connect_ms=77)
        ctx_n = mgr_n.remaining_timeout(cap_time_ms=300, cap_timeout_label="cap")
        assert ctx_n.request_ms == 300
        assert ctx_n.label == "cap"
        assert ctx_n.connect_ms == 77

        mgr_1 = MultiCallTimeoutManager(overall_timeout_ms=60000, timeout_label="all")
        ctx_capped = mgr_1.remaining_timeout(cap_time_ms=300, cap_timeout_label="cap")
        assert ctx_capped.request_ms == 300
        assert ctx_capped.label == "cap"

        mgr_2 = MultiCallTimeoutManager(overall_timeout_ms=200, timeout_label="all")
        ctx_deadline = mgr_2.remaining_timeout(cap_time_ms=60000, cap_timeout_label="cap")
        assert ctx_deadline.request_ms is not None
        assert ctx_deadline.request_ms <= 200
        assert ctx_deadline.nominal_ms == 200
        assert ctx_deadline.label == "all"
