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

"""Configuration management for updater.

This module loads the layered YAML configuration: built-in defaults, an
optional configuration file, then caller overrides.

Public API:

- load_config: Load and merge the effective configuration.
- ServiceSettings: Typed view of the settings UpdateService uses.
- DEFAULT_CONFIG: Built-in defaults.

Example:
    ```python
    from updater.config import ServiceSettings, load_config

    cfg = load_config("updater.yaml")
    settings = ServiceSettings.from_config(cfg)
    print(settings.prerelease_ordering)
    ```
"""

from .loader import DEFAULT_CONFIG, ServiceSettings, load_config

__all__ = ["DEFAULT_CONFIG", "ServiceSettings", "load_config"]
