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

"""Update determination policy for updater.

Modules:

updates : module
    Candidate filtering, best-release selection and required-update rules.

Public API:

decide_update : function
    Decide whether a client gets an update, and which release.
latest_release : function
    Greatest eligible release for a platform/architecture pair.
is_required_for : function
    Whether a release is mandatory for a given current version.

Example:
    from updater.policy import decide_update

    decision = decide_update(
        current_version="1.2.0",
        candidates=releases,
        allow_prerelease=False,
    )
    print(f"Update available: {decision.update_available}")

"""

from .updates import (
    Candidate,
    decide_update,
    eligible_candidates,
    is_required_for,
    latest_release,
    select_best,
)

__all__ = [
    "Candidate",
    "decide_update",
    "eligible_candidates",
    "is_required_for",
    "latest_release",
    "select_best",
]
