# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Cooperative cancellation for service calls.

Storage calls are the only points where a determination can block. The
service checks a :class:`CancellationToken` before and after each of them
and hands the same token to the storage backend, so a cancelled or expired
request aborts without returning a partial decision.

Example:
    ```python
    from updater.cancellation import CancellationToken

    token = CancellationToken.with_timeout(2.0)
    decision = service.check_for_update(
        "my-app", "1.2.0", "linux", "amd64", token=token
    )
    ```
"""

from __future__ import annotations

import threading
import time

from updater.exceptions import CancelledError


class CancellationToken:
    """Thread-safe cancellation flag with an optional deadline.

    Attributes:
        deadline: Monotonic clock value after which the token counts as
            cancelled, or None for no deadline.

    """

    def __init__(self, deadline: float | None = None) -> None:
        self._cancelled = threading.Event()
        self.deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: float) -> CancellationToken:
        """Create a token that expires ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        self._cancelled.set()

    def is_cancelled(self) -> bool:
        """Return True if cancelled explicitly or past the deadline."""
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def raise_if_cancelled(self, operation: str = "request") -> None:
        """Raise CancelledError if the token has fired.

        Args:
            operation: Name of the operation, used in the error message.

        Raises:
            CancelledError: If cancelled or past the deadline.

        """
        if self._cancelled.is_set():
            raise CancelledError(f"{operation} cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise CancelledError(f"{operation} deadline exceeded")


def check_token(token: CancellationToken | None, operation: str) -> None:
    """Raise CancelledError if ``token`` is set and has fired."""
    if token is not None:
        token.raise_if_cancelled(operation)
